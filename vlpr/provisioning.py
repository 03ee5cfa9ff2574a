"""
Model artifact provisioning.

Downloads model files over HTTP into a local models folder, verifies their
SHA-256 checksum and reuses files that are already cached.
"""
import asyncio
import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import urlparse

import requests

from .exceptions import ProvisioningError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, Optional[int]], None]


@dataclass
class DownloadableFile:
    """A file registered with the provisioner"""
    url: Optional[str]
    local_folder: str
    expected_checksum: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def local_file(self) -> str:
        name = self.file_name or os.path.basename(urlparse(self.url).path)
        return os.path.join(self.local_folder, name)


def sha256_file(path: str, chunk_size: int = 1 << 20) -> str:
    """Compute the SHA-256 hex digest of a file"""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ModelProvisioner:
    """
    Fetches and verifies the artifacts of one model.

    Files are registered with add_file() and fetched with download(), which
    resolves to their local paths in registration order. Progress callbacks in
    on_download_progress_changed receive (bytes_received, total_bytes), where
    total_bytes is None when the server does not report a length.
    """

    def __init__(self, session: Optional[requests.Session] = None, retries: int = 2,
                 timeout: float = 60.0, chunk_size: int = 1 << 16):
        self.files: List[DownloadableFile] = []
        self.on_download_progress_changed: List[ProgressCallback] = []
        self._session = session
        self.retries = retries
        self.timeout = timeout
        self.chunk_size = chunk_size

    def add_file(self, url: Optional[str], local_folder: str,
                 expected_checksum: Optional[str] = None,
                 file_name: Optional[str] = None) -> DownloadableFile:
        """
        Register a file to download.

        Args:
            url: Source URL, or None for a file that must already exist locally
            local_folder: Folder the file is stored in
            expected_checksum: Optional SHA-256 hex digest
            file_name: Local file name; defaults to the last URL path segment

        Returns:
            The registered file
        """
        if url is None and file_name is None:
            raise ValueError("A file without URL needs an explicit file name")
        entry = DownloadableFile(url, local_folder, expected_checksum, file_name)
        self.files.append(entry)
        return entry

    async def download(self) -> List[str]:
        """
        Download every registered file that is not already cached.

        Returns:
            Local file paths in registration order

        Raises:
            ProvisioningError: On network failure, missing local file or checksum mismatch
        """
        paths = []
        for entry in self.files:
            await asyncio.to_thread(self._fetch, entry)
            paths.append(entry.local_file)
        return paths

    def _is_cached(self, entry: DownloadableFile) -> bool:
        if not os.path.exists(entry.local_file):
            return False
        if entry.expected_checksum is None:
            return True
        if self._checksum_matches(entry.local_file, entry.expected_checksum):
            return True
        logger.warning(f"Cached file {entry.local_file} has a wrong checksum, downloading again")
        return False

    @staticmethod
    def _checksum_matches(path: str, expected: str) -> bool:
        return sha256_file(path).lower() == expected.lower()

    def _fetch(self, entry: DownloadableFile) -> None:
        if self._is_cached(entry):
            logger.debug(f"Using cached model file {entry.local_file}")
            return

        if entry.url is None:
            raise ProvisioningError(None, f"{entry.local_file} does not exist and has no download URL")

        try:
            os.makedirs(entry.local_folder, exist_ok=True)
        except OSError as e:
            raise ProvisioningError(entry.url, "cannot create model folder", e)

        last_error = None
        for attempt in range(self.retries + 1):
            try:
                self._stream_to_file(entry)
                break
            except requests.RequestException as e:
                last_error = e
                logger.warning(f"Download of {entry.url} failed (attempt {attempt + 1}/{self.retries + 1}): {e}")
            # requests exceptions are OSErrors too, so local I/O is caught second
            except OSError as e:
                raise ProvisioningError(entry.url, "cannot write model file", e)
        else:
            raise ProvisioningError(entry.url, "download failed", last_error)

        if entry.expected_checksum is not None and \
                not self._checksum_matches(entry.local_file, entry.expected_checksum):
            os.remove(entry.local_file)
            raise ProvisioningError(entry.url, "checksum mismatch")

        logger.info(f"Downloaded {entry.url} to {entry.local_file}")

    def _stream_to_file(self, entry: DownloadableFile) -> None:
        session = self._session or requests.Session()
        partial_path = entry.local_file + ".part"
        try:
            with session.get(entry.url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                length = response.headers.get("Content-Length")
                total = int(length) if length and length.isdigit() else None
                received = 0
                with open(partial_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self.chunk_size):
                        if not chunk:
                            continue
                        f.write(chunk)
                        received += len(chunk)
                        for callback in self.on_download_progress_changed:
                            callback(received, total)
            os.replace(partial_path, entry.local_file)
        finally:
            if os.path.isfile(partial_path):
                os.remove(partial_path)
            if self._session is None:
                session.close()
