"""
Inference engine backed by ONNX Runtime.
Creates one InferenceSession per model with GPU provider selection and CPU fallback.
"""
import logging
import os
from typing import List, Optional, Sequence

import numpy as np
import onnxruntime as ort

from .engine import InferenceEngine, ModelHandle
from ..exceptions import ModelLoadingError, InferenceError

logger = logging.getLogger(__name__)

_GPU_ERROR_KEYWORDS = ('dml', 'directml', 'cuda', 'gpu', 'device', 'd3d12', 'dxgi')


def _is_gpu_error(error: Exception) -> bool:
    error_str = str(error).lower()
    return any(keyword in error_str for keyword in _GPU_ERROR_KEYWORDS)


class OnnxRuntimeEngine(InferenceEngine):
    """
    Runs ONNX models with onnxruntime.

    Inputs are bound on the handle and passed together to session.run(), so an
    input set once after loading is supplied to every forward pass.
    """

    name = "onnxruntime"

    def __init__(self, use_cuda: bool = False, use_directml: bool = False, device_id: int = 0):
        self.use_cuda = use_cuda
        self.use_directml = use_directml
        self.device_id = device_id or 0
        self._available_providers = ort.get_available_providers()
        logger.debug(f"ONNX Runtime available providers: {self._available_providers}")

    def _select_providers(self) -> list:
        """Provider priority: DirectML -> CUDA -> CPU"""
        providers = []
        if self.use_directml:
            if 'DmlExecutionProvider' in self._available_providers:
                providers.append(('DmlExecutionProvider', {"device_id": self.device_id}))
            else:
                logger.info(f"DirectML requested but not available. Available providers: {self._available_providers}")
        if self.use_cuda and not providers:
            if 'CUDAExecutionProvider' in self._available_providers:
                providers.append(('CUDAExecutionProvider', {"device_id": self.device_id}))
            else:
                logger.info(f"CUDA requested but not available. Available providers: {self._available_providers}")
        providers.append('CPUExecutionProvider')
        return providers

    @staticmethod
    def _create_session(model_path: str, providers: list) -> ort.InferenceSession:
        session_options = ort.SessionOptions()
        session_options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        return ort.InferenceSession(model_path, sess_options=session_options, providers=providers)

    def load(self, model_path: str, config_path: Optional[str] = None) -> ModelHandle:
        if not os.path.exists(model_path):
            raise ModelLoadingError(model_path, FileNotFoundError(f"Model file not found: {model_path}"))

        providers = self._select_providers()
        try:
            session = self._create_session(model_path, providers)
        except Exception as e:
            if not (_is_gpu_error(e) and len(providers) > 1):
                raise ModelLoadingError(model_path, e)
            logger.warning(f"GPU session creation failed for {model_path}, attempting CPU-only fallback: {e}")
            try:
                session = self._create_session(model_path, ['CPUExecutionProvider'])
            except Exception as fallback_error:
                raise ModelLoadingError(model_path, fallback_error)

        logger.info(f"Created ONNX session for {model_path} with providers: {session.get_providers()}")
        return ModelHandle(
            model_path=model_path,
            config_path=config_path,
            backend=session,
            input_names=[i.name for i in session.get_inputs()],
            output_names=[o.name for o in session.get_outputs()]
        )

    def set_input(self, handle: ModelHandle, tensor: np.ndarray, input_name: Optional[str] = None) -> None:
        name = input_name or handle.input_names[0]
        handle.bound_inputs[name] = np.ascontiguousarray(tensor, dtype=np.float32)

    def forward(self, handle: ModelHandle, output_names: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        names = list(output_names) if output_names else handle.output_names
        with handle.lock:
            try:
                return list(handle.backend.run(names, handle.bound_inputs))
            except Exception as e:
                if not _is_gpu_error(e) or handle.backend.get_providers()[0] == 'CPUExecutionProvider':
                    raise InferenceError(os.path.basename(handle.model_path), e)
                logger.warning(f"GPU error detected for {handle.model_path}, falling back to CPU: {e}")
                self._fallback_to_cpu(handle)
            try:
                return list(handle.backend.run(names, handle.bound_inputs))
            except Exception as e:
                raise InferenceError(os.path.basename(handle.model_path), e)

    def _fallback_to_cpu(self, handle: ModelHandle) -> None:
        """Recreate the session of a handle with the CPU provider only"""
        try:
            handle.backend = self._create_session(handle.model_path, ['CPUExecutionProvider'])
        except Exception as e:
            raise InferenceError(os.path.basename(handle.model_path), e)
        logger.info(f"CPU fallback successful for {handle.model_path}")

    def release(self, handle: ModelHandle) -> None:
        handle.backend = None
        handle.bound_inputs.clear()
        handle.released = True
