"""
Configuration module for the VLPR system.
Handles loading and validating configuration from environment variables.
"""
import os
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

SUPPORTED_BACKENDS = ("openvino", "onnxruntime")


@dataclass
class VLPRConfig:
    """Configuration for the vehicle and license plate recognition system"""
    # Paths
    app_dir: str = field(default_factory=lambda: os.path.normpath(os.getcwd()))
    models_dir: str = field(default_factory=lambda: os.path.normpath(os.path.join(os.getcwd(), "models")))

    # Inference backend used to run the three models
    inference_backend: str = "openvino"

    # Confidence thresholds
    vehicle_detector_confidence: float = 0.5
    plate_detector_confidence: float = 0.5

    # Fraction of the plate area that must lie inside a vehicle
    plate_overlap_ratio: float = 0.8

    # Model provisioning
    download_retries: int = 2
    download_timeout: float = 60.0
    detector_onnx_url: Optional[str] = None
    attributes_onnx_url: Optional[str] = None
    ocr_onnx_url: Optional[str] = None

    # Debug options
    save_debug_images: bool = False
    debug_images_dir: str = field(default_factory=lambda: os.path.normpath(os.path.join(os.getcwd(), "debug_images")))

    # Hardware acceleration
    openvino_device: str = "CPU"
    use_cuda: bool = False
    use_directml: bool = False
    device_id: Optional[int] = None

    def __post_init__(self):
        """Validate configuration and create the directories it needs"""
        self.validate()

        if self.save_debug_images and not os.path.exists(self.debug_images_dir):
            os.makedirs(self.debug_images_dir, exist_ok=True)

    def validate(self) -> None:
        """Validate the configuration values"""
        for name, value in {
            "vehicle_detector_confidence": self.vehicle_detector_confidence,
            "plate_detector_confidence": self.plate_detector_confidence,
        }.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Confidence threshold {name} must be between 0.0 and 1.0")

        if not 0.0 < self.plate_overlap_ratio <= 1.0:
            raise ValueError(f"Plate overlap ratio must be in (0.0, 1.0], got {self.plate_overlap_ratio}")

        if self.inference_backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unsupported inference backend {self.inference_backend!r}, expected one of {SUPPORTED_BACKENDS}")

        if self.download_retries < 0:
            raise ValueError(f"Download retries must be non-negative, got {self.download_retries}")

        if self.download_timeout <= 0:
            raise ValueError(f"Download timeout must be positive, got {self.download_timeout}")

        if self.device_id is not None and self.device_id < 0:
            raise ValueError(f"Device ID must be non-negative, got {self.device_id}")

    def get_model_dir(self, folder_name: str) -> str:
        """Get the local folder that holds the artifacts of one model family"""
        return os.path.join(self.models_dir, folder_name)

    def as_dict(self) -> Dict[str, Any]:
        """Convert configuration to a dictionary"""
        return {
            "paths": {
                "app_dir": self.app_dir,
                "models_dir": self.models_dir,
                "debug_images_dir": self.debug_images_dir if self.save_debug_images else None,
            },
            "inference_backend": self.inference_backend,
            "confidence_thresholds": {
                "vehicle_detector": self.vehicle_detector_confidence,
                "plate_detector": self.plate_detector_confidence,
            },
            "association": {
                "plate_overlap_ratio": self.plate_overlap_ratio,
            },
            "provisioning": {
                "download_retries": self.download_retries,
                "download_timeout": self.download_timeout,
                "detector_onnx_url": self.detector_onnx_url,
                "attributes_onnx_url": self.attributes_onnx_url,
                "ocr_onnx_url": self.ocr_onnx_url,
            },
            "hardware": {
                "openvino_device": self.openvino_device,
                "use_cuda": self.use_cuda,
                "use_directml": self.use_directml,
                "device_id": self.device_id,
            }
        }

    def __str__(self) -> str:
        """Convert configuration to a string representation"""
        import json
        return json.dumps(self.as_dict(), indent=2)


def load_from_env() -> VLPRConfig:
    """Load configuration from environment variables"""
    from codeproject_ai_sdk import ModuleOptions

    app_dir = os.path.normpath(ModuleOptions.getEnvVariable("APPDIR", os.getcwd()))
    models_dir = os.path.normpath(ModuleOptions.getEnvVariable("MODELS_DIR", f"{app_dir}/models"))

    inference_backend = ModuleOptions.getEnvVariable("INFERENCE_BACKEND", "openvino").lower()

    # Confidence thresholds
    vehicle_detector_confidence = float(ModuleOptions.getEnvVariable("VEHICLE_DETECTOR_CONFIDENCE", "0.5"))
    plate_detector_confidence = float(ModuleOptions.getEnvVariable("PLATE_DETECTOR_CONFIDENCE", "0.5"))
    plate_overlap_ratio = float(ModuleOptions.getEnvVariable("PLATE_OVERLAP_RATIO", "0.8"))

    # Provisioning
    download_retries = int(ModuleOptions.getEnvVariable("DOWNLOAD_RETRIES", "2"))
    download_timeout = float(ModuleOptions.getEnvVariable("DOWNLOAD_TIMEOUT", "60"))
    detector_onnx_url = ModuleOptions.getEnvVariable("DETECTOR_ONNX_URL", "") or None
    attributes_onnx_url = ModuleOptions.getEnvVariable("ATTRIBUTES_ONNX_URL", "") or None
    ocr_onnx_url = ModuleOptions.getEnvVariable("OCR_ONNX_URL", "") or None

    # Debug options
    save_debug_images = ModuleOptions.getEnvVariable("SAVE_DEBUG_IMAGES", "False").lower() == "true"
    debug_images_dir = os.path.normpath(ModuleOptions.getEnvVariable("DEBUG_IMAGES_DIR", f"{app_dir}/debug_images"))

    # Hardware acceleration
    openvino_device = ModuleOptions.getEnvVariable("OPENVINO_DEVICE", "CPU").upper()
    use_cuda = ModuleOptions.getEnvVariable("USE_CUDA", "False").lower() == "true"
    use_directml = ModuleOptions.getEnvVariable("USE_DIRECTML", "False").lower() == "true"
    device_id_str = ModuleOptions.getEnvVariable("DEVICE_ID", "None")
    device_id = int(device_id_str) if device_id_str and device_id_str.isdigit() else None

    return VLPRConfig(
        app_dir=app_dir,
        models_dir=models_dir,
        inference_backend=inference_backend,
        vehicle_detector_confidence=vehicle_detector_confidence,
        plate_detector_confidence=plate_detector_confidence,
        plate_overlap_ratio=plate_overlap_ratio,
        download_retries=download_retries,
        download_timeout=download_timeout,
        detector_onnx_url=detector_onnx_url,
        attributes_onnx_url=attributes_onnx_url,
        ocr_onnx_url=ocr_onnx_url,
        save_debug_images=save_debug_images,
        debug_images_dir=debug_images_dir,
        openvino_device=openvino_device,
        use_cuda=use_cuda,
        use_directml=use_directml,
        device_id=device_id
    )
