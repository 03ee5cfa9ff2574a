"""
Model catalog: the artifacts each model slot downloads, per inference backend.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import VLPRConfig

MODEL_FOLDER = "vehicle-license-plate-detection-barrier-0106-openvino-2021.2"

_OMZ_BASE = "https://storage.openvinotoolkit.org/repositories/open_model_zoo/2021.2/models_bin/3"

DETECTOR = "vehicle_license_plate_detector"
ATTRIBUTES = "vehicle_attributes_recognizer"
OCR = "license_plate_recognizer"

SLOT_NAMES = (DETECTOR, ATTRIBUTES, OCR)


@dataclass(frozen=True)
class ModelArtifact:
    """One file of a model. Role is 'weights' or 'config'."""
    role: str
    url: Optional[str]
    sha256: Optional[str] = None
    file_name: Optional[str] = None


def _omz(model: str, ext: str) -> str:
    return f"{_OMZ_BASE}/{model}/FP32/{model}.{ext}"


OPENVINO_CATALOG: Dict[str, List[ModelArtifact]] = {
    DETECTOR: [
        ModelArtifact("config", _omz("vehicle-license-plate-detection-barrier-0106", "xml")),
        ModelArtifact("weights", _omz("vehicle-license-plate-detection-barrier-0106", "bin")),
    ],
    ATTRIBUTES: [
        ModelArtifact("config", _omz("vehicle-attributes-recognition-barrier-0042", "xml"),
                      "9D1E877B153699CAF4547D08BFF7FE268F65B663441A42B929924B8D95DACDBB"),
        ModelArtifact("weights", _omz("vehicle-attributes-recognition-barrier-0042", "bin"),
                      "492520E55F452223E767D54227D6EF6B60B0C1752DD7B9D747BE65D57B685A0E"),
    ],
    OCR: [
        ModelArtifact("config", _omz("license-plate-recognition-barrier-0001", "xml"),
                      "B5B649B9566F5CF352554ACFFD44207F4AECEE1DA767F4B69F46060A102623FA"),
        ModelArtifact("weights", _omz("license-plate-recognition-barrier-0001", "bin"),
                      "685934518A930CC55D023A53AC2D5E47BBE81B80828354D8318DE6DC3AD5CFBA"),
    ],
}


def onnx_catalog(config: VLPRConfig) -> Dict[str, List[ModelArtifact]]:
    """ONNX exports of the same three models, one file each"""
    return {
        DETECTOR: [ModelArtifact("weights", config.detector_onnx_url,
                                 file_name="vehicle-license-plate-detection-barrier-0106.onnx")],
        ATTRIBUTES: [ModelArtifact("weights", config.attributes_onnx_url,
                                   file_name="vehicle-attributes-recognition-barrier-0042.onnx")],
        OCR: [ModelArtifact("weights", config.ocr_onnx_url,
                            file_name="license-plate-recognition-barrier-0001.onnx")],
    }


def get_catalog(config: VLPRConfig) -> Dict[str, List[ModelArtifact]]:
    """Get the artifacts of every slot for the configured backend"""
    if config.inference_backend == "onnxruntime":
        return onnx_catalog(config)
    return OPENVINO_CATALOG
