"""
Shared fixtures: a scripted inference engine, an offline provisioner and a fake HTTP session.
"""
import asyncio
import os
import sys
from urllib.parse import urlparse

import numpy as np
import pytest
import requests

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from vlpr.config import VLPRConfig
from vlpr.core import VehicleLicensePlateSystem
from vlpr.dnn.engine import InferenceEngine, ModelHandle


def make_detections(rows):
    """Build a DetectionOutput tensor [1, 1, N, 7] from rows"""
    return np.array(rows, dtype=np.float32).reshape(1, 1, -1, 7)


def one_hot(index, size):
    scores = np.zeros((1, size, 1, 1), dtype=np.float32)
    scores[0, index, 0, 0] = 0.9
    return scores


def plate_sequence(indices):
    values = np.full((1, 88, 1, 1), -1.0, dtype=np.float32)
    for i, index in enumerate(indices):
        values[0, i, 0, 0] = index
    return values


class FakeEngine(InferenceEngine):
    """Returns scripted outputs chosen by the loaded weights file name"""

    name = "fake"

    def __init__(self):
        self.loaded = []
        self.released = []
        self.set_inputs = []
        self.forward_calls = []
        self.detections = make_detections([[0, 0, 0.0, 0, 0, 0, 0]])
        self.color_scores = one_hot(0, 7)
        self.type_scores = one_hot(0, 4)
        self.plate_values = plate_sequence([])

    def load(self, model_path, config_path=None):
        self.loaded.append((model_path, config_path))
        return ModelHandle(model_path, config_path, backend=os.path.basename(model_path))

    def set_input(self, handle, tensor, input_name=None):
        handle.bound_inputs[input_name or ""] = tensor
        self.set_inputs.append((handle.backend, input_name, tensor))

    def forward(self, handle, output_names=None):
        self.forward_calls.append((handle.backend, output_names))
        if "detection" in handle.backend:
            return [self.detections]
        if "attributes" in handle.backend:
            return [self.color_scores, self.type_scores]
        return [self.plate_values]

    def release(self, handle):
        self.released.append(handle.backend)
        handle.released = True


class OfflineProvisioning:
    """Provisioner factory that records downloads instead of fetching anything"""

    def __init__(self):
        self.downloads = []
        self.failures = []

    def factory(self):
        return _OfflineProvisioner(self)


class _OfflineProvisioner:
    def __init__(self, owner):
        self.owner = owner
        self.files = []
        self.on_download_progress_changed = []

    def add_file(self, url, local_folder, expected_checksum=None, file_name=None):
        name = file_name or os.path.basename(urlparse(url).path)
        self.files.append(os.path.join(local_folder, name))

    async def download(self):
        await asyncio.sleep(0)
        if self.owner.failures:
            raise self.owner.failures.pop(0)
        self.owner.downloads.append(list(self.files))
        for callback in self.on_download_progress_changed:
            callback(50, 100)
            callback(100, 100)
        return list(self.files)


class FakeResponse:
    def __init__(self, payload=b"", status_code=200, chunk=4):
        self.payload = payload
        self.status_code = status_code
        self.headers = {"Content-Length": str(len(payload))}
        self.chunk = chunk

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.payload), self.chunk):
            yield self.payload[i:i + self.chunk]


class FakeSession:
    """Serves queued responses (or raises queued exceptions) for each GET"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requested = []

    def get(self, url, stream=False, timeout=None):
        self.requested.append(url)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config(tmp_path):
    return VLPRConfig(
        app_dir=str(tmp_path),
        models_dir=str(tmp_path / "models"),
        debug_images_dir=str(tmp_path / "debug_images")
    )


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def provisioning():
    return OfflineProvisioning()


@pytest.fixture
def system(config, engine, provisioning):
    return VehicleLicensePlateSystem(config, engine=engine, provisioner_factory=provisioning.factory)


@pytest.fixture
def ready_system(system):
    asyncio.run(system.init())
    return system


@pytest.fixture
def image():
    return np.zeros((200, 200, 3), dtype=np.uint8)
