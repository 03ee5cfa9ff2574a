"""
Vehicle color and type classification.
"""
from typing import Tuple

import numpy as np

from .model_slot import ModelSlot
from ..labels import COLOR_NAMES, VEHICLE_TYPES
from ..types import Rectangle
from ..utils.image_processing import BlobParams, blob_from_image, crop_region

ATTRIBUTES_INPUT = BlobParams(size=(72, 72))


class AttributeClassifier:
    """
    Classifies the color and body type of a vehicle region.
    The model has one input ("input") and two outputs ("color", "type").
    """

    input_name = "input"
    output_names = ("color", "type")

    def __init__(self, slot: ModelSlot):
        self.slot = slot

    def classify(self, image: np.ndarray, vehicle_region: Rectangle) -> Tuple[str, str]:
        """
        Classify a vehicle.

        Args:
            image: Full input image (BGR format)
            vehicle_region: Region of the vehicle in the image

        Returns:
            Tuple of (color, type)
        """
        blob = blob_from_image(crop_region(image, vehicle_region), ATTRIBUTES_INPUT)
        color_scores, type_scores = self.slot.engine.run(
            self.slot.handle, {self.input_name: blob}, self.output_names)
        color = COLOR_NAMES[int(np.argmax(color_scores.ravel()))]
        vehicle_type = VEHICLE_TYPES[int(np.argmax(type_scores.ravel()))]
        return color, vehicle_type
