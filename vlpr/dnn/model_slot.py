"""
Lazily provisioned model slots.
"""
import asyncio
import enum
import logging
from typing import Callable, List, Optional

from .engine import InferenceEngine, ModelHandle
from ..catalog import ModelArtifact
from ..exceptions import ModelNotReadyError
from ..provisioning import ModelProvisioner, ProgressCallback

logger = logging.getLogger(__name__)

PostLoadHook = Callable[[InferenceEngine, ModelHandle], None]


class SlotState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    PROVISIONING = "provisioning"
    READY = "ready"


class ModelSlot:
    """
    Owns one model handle through its Uninitialized -> Provisioning -> Ready lifecycle.

    ensure_ready() downloads the slot's artifacts, loads them into the engine and
    runs the post-load hook. It is idempotent, and concurrent callers share one
    provisioning run: the per-slot lock makes later callers wait and then see
    the slot as Ready. A failure puts the slot back to Uninitialized so the
    next call starts over. The lock is created for the running event loop, so
    successive asyncio.run() calls can each drive the slot.
    """

    def __init__(self, name: str, artifacts: List[ModelArtifact], local_folder: str,
                 engine: InferenceEngine,
                 provisioner_factory: Callable[[], ModelProvisioner] = ModelProvisioner,
                 post_load: Optional[PostLoadHook] = None):
        self.name = name
        self.artifacts = artifacts
        self.local_folder = local_folder
        self.engine = engine
        self.provisioner_factory = provisioner_factory
        self.post_load = post_load
        self.state = SlotState.UNINITIALIZED
        self._handle: Optional[ModelHandle] = None
        self._lock: Optional[asyncio.Lock] = None
        self._lock_loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_ready(self) -> bool:
        return self.state is SlotState.READY

    @property
    def handle(self) -> ModelHandle:
        """The loaded model handle. Raises ModelNotReadyError before ensure_ready()."""
        if self.state is not SlotState.READY or self._handle is None:
            raise ModelNotReadyError(self.name)
        return self._handle

    def _get_lock(self) -> asyncio.Lock:
        # asyncio locks bind to the loop that first waits on them
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def ensure_ready(self, progress_callback: Optional[ProgressCallback] = None) -> ModelHandle:
        async with self._get_lock():
            if self.state is SlotState.READY:
                return self._handle

            self.state = SlotState.PROVISIONING
            try:
                self._handle = await self._provision_and_load(progress_callback)
            except BaseException:
                self.state = SlotState.UNINITIALIZED
                self._handle = None
                raise
            self.state = SlotState.READY
            logger.info(f"Model '{self.name}' is ready")
            return self._handle

    async def _provision_and_load(self, progress_callback: Optional[ProgressCallback]) -> ModelHandle:
        provisioner = self.provisioner_factory()
        for artifact in self.artifacts:
            provisioner.add_file(artifact.url, self.local_folder, artifact.sha256, artifact.file_name)
        if progress_callback is not None:
            provisioner.on_download_progress_changed.append(progress_callback)

        paths = await provisioner.download()
        by_role = {artifact.role: path for artifact, path in zip(self.artifacts, paths)}

        handle = self.engine.load(by_role["weights"], by_role.get("config"))
        if self.post_load is not None:
            try:
                self.post_load(self.engine, handle)
            except BaseException:
                self.engine.release(handle)
                raise
        return handle

    def release(self) -> None:
        """Release the model handle. Safe to call more than once."""
        if self._handle is not None:
            self.engine.release(self._handle)
            self._handle = None
            logger.debug(f"Released model '{self.name}'")
        self.state = SlotState.UNINITIALIZED
