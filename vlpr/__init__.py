"""
Vehicle and License Plate Recognition (VLPR) System.

This package detects vehicles and license plates in still images using three
chained models:
- Vehicle and license plate detection
- Vehicle color and type classification
- License plate character recognition

Models are downloaded on first use and run through OpenVINO or ONNX Runtime.
"""

from .config import VLPRConfig, load_from_env
from .core import VehicleLicensePlateSystem
from .types import Rectangle, DetectedObject, LicensePlate, Vehicle
from .association import associate
from .exceptions import (
    VLPRException,
    ConfigurationError,
    ProvisioningError,
    ModelLoadingError,
    ModelNotReadyError,
    InferenceError,
    ImageProcessingError
)

__version__ = "1.0.0"
__all__ = [
    "VLPRConfig",
    "load_from_env",
    "VehicleLicensePlateSystem",
    "Rectangle",
    "DetectedObject",
    "LicensePlate",
    "Vehicle",
    "associate",
    "VLPRException",
    "ConfigurationError",
    "ProvisioningError",
    "ModelLoadingError",
    "ModelNotReadyError",
    "InferenceError",
    "ImageProcessingError"
]
