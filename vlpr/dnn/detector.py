"""
Vehicle and license plate detection with an SSD-style detector.
"""
import logging
from typing import List, Tuple

import numpy as np

from .engine import InferenceEngine, ModelHandle
from .model_slot import ModelSlot
from ..types import DetectedObject, Rectangle
from ..utils.image_processing import BlobParams, blob_from_image

logger = logging.getLogger(__name__)

DETECTOR_INPUT = BlobParams(size=(300, 300), scale=1.0, mean=(0.0, 0.0, 0.0), swap_rb=False, crop=False)


def configure_detector(engine: InferenceEngine, handle: ModelHandle) -> None:
    """Post-load hook: attach the detector's fixed input parameters to its handle"""
    handle.input_params = DETECTOR_INPUT


def parse_detections(output: np.ndarray, frame_width: int, frame_height: int) -> List[DetectedObject]:
    """
    Convert a DetectionOutput tensor into pixel-space detections.

    Each row is [image_id, label, confidence, left, top, right, bottom]. Boxes
    whose pixel size would be at most 2 are taken as normalized coordinates and
    scaled by the frame size. Every box is clamped into the frame.

    Args:
        output: Detector output, reshaped to [N, 7]
        frame_width: Width of the original image
        frame_height: Height of the original image

    Returns:
        Detections in output order, without any confidence filtering
    """
    detections = []
    for row in np.asarray(output, dtype=np.float32).reshape(-1, 7):
        left, top, right, bottom = int(row[3]), int(row[4]), int(row[5]), int(row[6])
        width = right - left + 1
        height = bottom - top + 1
        if width <= 2 or height <= 2:
            left = int(row[3] * frame_width)
            top = int(row[4] * frame_height)
            right = int(row[5] * frame_width)
            bottom = int(row[6] * frame_height)
            width = right - left + 1
            height = bottom - top + 1

        left = max(0, min(left, frame_width - 1))
        top = max(0, min(top, frame_height - 1))
        width = max(1, min(width, frame_width - left))
        height = max(1, min(height, frame_height - top))

        detections.append(DetectedObject(
            class_id=int(row[1]),
            confidence=float(row[2]),
            region=Rectangle(left, top, width, height)
        ))
    return detections


class VehiclePlateDetector:
    """
    Detects vehicles (class 1) and license plates (class 2) in a full image.
    """

    def __init__(self, slot: ModelSlot):
        self.slot = slot

    def detect_raw(self, image: np.ndarray) -> List[DetectedObject]:
        """Run the detector and return every candidate, regardless of confidence"""
        handle = self.slot.handle
        blob = blob_from_image(image, handle.input_params or DETECTOR_INPUT)
        outputs = self.slot.engine.run(handle, {None: blob})
        h, w = image.shape[:2]
        return parse_detections(outputs[0], w, h)

    def detect(self, image: np.ndarray, vehicle_threshold: float = 0.5,
               plate_threshold: float = 0.5) -> List[DetectedObject]:
        """
        Detect vehicles and license plates in the image.

        Args:
            image: Input image as numpy array (BGR format)
            vehicle_threshold: Vehicles need a confidence strictly above this value
            plate_threshold: Plates need a confidence strictly above this value

        Returns:
            Vehicle and plate detections in detector order; other classes are dropped

        Raises:
            ModelNotReadyError: If the detector has not been initialized
            InferenceError: If the forward pass fails
        """
        kept = []
        for detection in self.detect_raw(image):
            if detection.is_vehicle and detection.confidence > vehicle_threshold:
                kept.append(detection)
            elif detection.is_plate and detection.confidence > plate_threshold:
                kept.append(detection)
        logger.debug(f"Detector kept {len(kept)} objects")
        return kept

    @staticmethod
    def split(detections: List[DetectedObject]) -> Tuple[List[DetectedObject], List[DetectedObject]]:
        """Split detections into (vehicles, plates), preserving order"""
        vehicles = [d for d in detections if d.is_vehicle]
        plates = [d for d in detections if d.is_plate]
        return vehicles, plates
