"""
Inference engine backed by the OpenVINO runtime.
Reads OpenVINO IR (.xml + .bin) or ONNX models and compiles them for one device, with CPU fallback.
"""
import logging
import os
from typing import List, Optional, Sequence

import numpy as np
import openvino as ov

from .engine import InferenceEngine, ModelHandle
from ..exceptions import ModelLoadingError, InferenceError

logger = logging.getLogger(__name__)


def _port_names(ports) -> List[str]:
    """Tensor names of model ports; unnamed ports get an empty name"""
    return [port.get_any_name() if port.get_names() else "" for port in ports]


class OpenVINOEngine(InferenceEngine):
    """
    Runs models with openvino.Core.

    Each handle owns a compiled model and one infer request. Inputs bound on
    the handle are passed to every infer() call, so an input set once after
    loading stays in effect.
    """

    name = "openvino"

    def __init__(self, device: str = "CPU"):
        self.device = device or "CPU"
        self._core = ov.Core()
        logger.debug(f"OpenVINO available devices: {self._core.available_devices}")

    def _compile(self, model, model_path: str):
        try:
            return self._core.compile_model(model, self.device)
        except Exception as e:
            if self.device == "CPU":
                raise ModelLoadingError(model_path, e)
            logger.warning(f"Compiling {model_path} for {self.device} failed, attempting CPU fallback: {e}")
        try:
            return self._core.compile_model(model, "CPU")
        except Exception as fallback_error:
            raise ModelLoadingError(model_path, fallback_error)

    def load(self, model_path: str, config_path: Optional[str] = None) -> ModelHandle:
        """
        Load a model.

        Args:
            model_path: Weights file (.bin) of an IR pair, or a self-contained model such as .onnx
            config_path: Network description (.xml) of an IR pair

        Returns:
            Handle whose backend is the model's infer request
        """
        for path in (model_path, config_path):
            if path is not None and not os.path.exists(path):
                raise ModelLoadingError(path, FileNotFoundError(f"Model file not found: {path}"))

        try:
            if config_path is not None:
                model = self._core.read_model(config_path, model_path)
            else:
                model = self._core.read_model(model_path)
        except Exception as e:
            raise ModelLoadingError(model_path, e)

        compiled = self._compile(model, model_path)
        logger.info(f"Compiled {config_path or model_path} for OpenVINO device {self.device}")
        return ModelHandle(
            model_path=model_path,
            config_path=config_path,
            backend=compiled.create_infer_request(),
            input_names=_port_names(compiled.inputs),
            output_names=_port_names(compiled.outputs)
        )

    def set_input(self, handle: ModelHandle, tensor: np.ndarray, input_name: Optional[str] = None) -> None:
        # Unnamed input goes to the first model input, by index
        key = input_name or handle.input_names[0] or 0
        handle.bound_inputs[key] = np.ascontiguousarray(tensor, dtype=np.float32)

    def forward(self, handle: ModelHandle, output_names: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        request = handle.backend
        with handle.lock:
            try:
                request.infer(handle.bound_inputs)
                if output_names:
                    return [request.get_tensor(name).data.copy() for name in output_names]
                return [request.get_output_tensor(i).data.copy() for i in range(len(handle.output_names))]
            except Exception as e:
                raise InferenceError(os.path.basename(handle.model_path), e)

    def release(self, handle: ModelHandle) -> None:
        handle.backend = None
        handle.bound_inputs.clear()
        handle.released = True
