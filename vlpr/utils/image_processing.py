"""
Image processing utilities for the VLPR system.
"""
import logging
import os
import re
import cv2
import numpy as np
from datetime import datetime
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..exceptions import ImageProcessingError
from ..types import Rectangle, Vehicle

logger = logging.getLogger(__name__)

VEHICLE_BOX_COLOR = (0, 0, 255)
LABEL_COLOR = (0, 255, 0)


@dataclass(frozen=True)
class BlobParams:
    """Input blob parameters, following cv2.dnn.blobFromImage"""
    size: Tuple[int, int]
    scale: float = 1.0
    mean: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    swap_rb: bool = False
    crop: bool = False


def crop_region(image: np.ndarray, region: Rectangle) -> np.ndarray:
    """
    Crop a region out of an image without copying.

    Args:
        image: Input image as numpy array
        region: Region to crop

    Returns:
        View of the cropped region

    Raises:
        ImageProcessingError: If the region is empty or outside the image
    """
    h, w = image.shape[:2]
    if region.is_empty or region.x < 0 or region.y < 0 or region.right > w or region.bottom > h:
        raise ImageProcessingError(
            "crop", ValueError(f"Region {region} is not inside an image of size {w}x{h}"))
    return image[region.y:region.bottom, region.x:region.right]


def blob_from_image(image: np.ndarray, params: BlobParams) -> np.ndarray:
    """
    Convert an image to a float32 NCHW blob.

    Args:
        image: Input image as numpy array (BGR format)
        params: Target size, scale, mean, channel swap and crop settings

    Returns:
        Blob with shape [1, C, H, W]

    Raises:
        ImageProcessingError: If conversion fails
    """
    try:
        return cv2.dnn.blobFromImage(
            image,
            scalefactor=params.scale,
            size=params.size,
            mean=params.mean,
            swapRB=params.swap_rb,
            crop=params.crop,
            ddepth=cv2.CV_32F
        )
    except cv2.error as e:
        raise ImageProcessingError("blob_from_image", e)


def render_vehicles(image: np.ndarray, vehicles: Sequence[Vehicle]) -> None:
    """
    Draw each vehicle's box and its "{color} {type} {plate}" label onto the image in place.

    Args:
        image: Image to draw on (BGR format)
        vehicles: Vehicles to draw
    """
    for vehicle in vehicles:
        region = vehicle.region
        cv2.rectangle(image, (region.x, region.y), (region.right - 1, region.bottom - 1),
                      VEHICLE_BOX_COLOR, 2)
        cv2.putText(image, vehicle.label, (region.x, region.y + 20),
                    cv2.FONT_HERSHEY_COMPLEX, 1.0, LABEL_COLOR, 2)


def save_debug_image(
    image: np.ndarray,
    debug_dir: str,
    prefix: str,
    suffix: str = "",
    vehicles: Optional[List[Vehicle]] = None
) -> str:
    """
    Save an image for debugging purposes with optional vehicle annotations.

    Args:
        image: Input image as numpy array (BGR format)
        debug_dir: Directory to save debug images
        prefix: Prefix for the filename (usually the stage name)
        suffix: Optional suffix for the filename
        vehicles: Optional vehicles to draw on a copy of the image

    Returns:
        Path to the saved image, or an empty string if saving failed
    """
    try:
        debug_image = image.copy()
        if vehicles:
            render_vehicles(debug_image, vehicles)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        filename = f"{prefix}_{timestamp}"
        if suffix:
            # Plate texts carry region markers such as <Beijing>
            filename += "_" + re.sub(r"[^\w.-]", "_", suffix)
        filename += ".jpg"

        os.makedirs(debug_dir, exist_ok=True)
        output_path = os.path.join(debug_dir, filename)
        cv2.imwrite(output_path, debug_image)
        return output_path

    except (cv2.error, OSError) as e:
        # Debug images are not critical
        logger.warning(f"Error saving debug image: {e}")
        return ""
