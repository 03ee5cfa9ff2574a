"""
Neural network stages for vehicle and license plate recognition.

This module contains the inference engines (OpenVINO and ONNX Runtime), the
lazily provisioned model slots, and the detector, attribute classifier and
plate OCR stages built on them.
"""

from .engine import InferenceEngine, ModelHandle
from .model_slot import ModelSlot, SlotState
from .openvino_engine import OpenVINOEngine
from .onnx_engine import OnnxRuntimeEngine
from .detector import VehiclePlateDetector, configure_detector, parse_detections
from .attribute_classifier import AttributeClassifier
from .plate_ocr import PlateOCR, decode_sequence, prime_ocr
from ..exceptions import ConfigurationError


def create_engine(config) -> InferenceEngine:
    """Create the inference engine selected by the configuration"""
    if config.inference_backend == "onnxruntime":
        return OnnxRuntimeEngine(
            use_cuda=config.use_cuda,
            use_directml=config.use_directml,
            device_id=config.device_id or 0
        )
    if config.inference_backend == "openvino":
        return OpenVINOEngine(device=config.openvino_device)
    raise ConfigurationError(f"Unknown inference backend: {config.inference_backend}")


__all__ = [
    'InferenceEngine',
    'ModelHandle',
    'ModelSlot',
    'SlotState',
    'OpenVINOEngine',
    'OnnxRuntimeEngine',
    'create_engine',
    'VehiclePlateDetector',
    'configure_detector',
    'parse_detections',
    'AttributeClassifier',
    'PlateOCR',
    'decode_sequence',
    'prime_ocr'
]
