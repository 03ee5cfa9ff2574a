"""
Utility functions for the VLPR system.
"""

# Export functions for easy access
from .image_processing import (
    BlobParams,
    crop_region,
    blob_from_image,
    render_vehicles,
    save_debug_image
)
