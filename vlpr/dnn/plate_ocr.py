"""
License plate text recognition.
"""
from typing import Iterable

import numpy as np

from .engine import InferenceEngine, ModelHandle
from .model_slot import ModelSlot
from ..labels import PLATE_ALPHABET
from ..types import Rectangle
from ..utils.image_processing import BlobParams, blob_from_image, crop_region

OCR_INPUT = BlobParams(size=(94, 24))
SEQUENCE_LENGTH = 88


def sequence_indicator() -> np.ndarray:
    """The seq_ind input of the OCR model: 0 followed by 87 ones, shaped (88, 1)"""
    values = np.ones((SEQUENCE_LENGTH, 1), dtype=np.float32)
    values[0] = 0.0
    return values


def prime_ocr(engine: InferenceEngine, handle: ModelHandle) -> None:
    """Post-load hook: feed the sequence indicator once, before any decode call"""
    engine.set_input(handle, sequence_indicator(), "seq_ind")


def decode_sequence(values: Iterable[float]) -> str:
    """
    Turn a decoded index sequence into plate text.

    Negative indices mean no character at that step and are skipped.

    Args:
        values: Symbol indices, in order

    Returns:
        The plate text, possibly empty
    """
    return "".join(PLATE_ALPHABET[int(v)] for v in values if int(v) >= 0)


class PlateOCR:
    """Reads the text of a license plate region."""

    input_name = "data"
    output_name = "decode"

    def __init__(self, slot: ModelSlot):
        self.slot = slot

    def decode(self, image: np.ndarray, plate_region: Rectangle) -> str:
        """
        Recognize the text of a plate.

        Args:
            image: Full input image (BGR format)
            plate_region: Region of the plate in the image

        Returns:
            The recognized text
        """
        blob = blob_from_image(crop_region(image, plate_region), OCR_INPUT)
        outputs = self.slot.engine.run(self.slot.handle, {self.input_name: blob}, [self.output_name])
        return decode_sequence(outputs[0].ravel())
