"""
Core VLPR system that coordinates the detection, classification and OCR pipeline.
"""
import functools
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .association import associate
from .catalog import ATTRIBUTES, DETECTOR, MODEL_FOLDER, OCR, get_catalog
from .config import VLPRConfig
from .dnn import (
    AttributeClassifier,
    InferenceEngine,
    ModelSlot,
    PlateOCR,
    VehiclePlateDetector,
    configure_detector,
    create_engine,
    prime_ocr,
)
from .provisioning import ModelProvisioner, ProgressCallback
from .types import LicensePlate, Vehicle
from .utils.image_processing import crop_region, render_vehicles, save_debug_image

logger = logging.getLogger(__name__)


class VehicleLicensePlateSystem:
    """
    Vehicle and license plate recognition system.

    Owns the three model slots (detector, attribute classifier, OCR) and runs
    them in sequence over one image. Models are downloaded and loaded by init();
    cleanup() releases them.
    """

    def __init__(self, config: VLPRConfig, engine: Optional[InferenceEngine] = None,
                 provisioner_factory: Optional[Callable[[], ModelProvisioner]] = None):
        """
        Initialize the system without loading any model.

        Args:
            config: Configuration for the VLPR system
            engine: Inference engine; created from the configuration if omitted
            provisioner_factory: Creates the provisioner used by each slot
        """
        self.config = config
        self.engine = engine or create_engine(config)
        if provisioner_factory is None:
            provisioner_factory = functools.partial(
                ModelProvisioner,
                retries=config.download_retries,
                timeout=config.download_timeout
            )

        catalog = get_catalog(config)
        folder = config.get_model_dir(MODEL_FOLDER)

        self.detector_slot = ModelSlot(DETECTOR, catalog[DETECTOR], folder, self.engine,
                                       provisioner_factory, configure_detector)
        self.attributes_slot = ModelSlot(ATTRIBUTES, catalog[ATTRIBUTES], folder, self.engine,
                                         provisioner_factory)
        self.ocr_slot = ModelSlot(OCR, catalog[OCR], folder, self.engine,
                                  provisioner_factory, prime_ocr)

        self.detector = VehiclePlateDetector(self.detector_slot)
        self.attribute_classifier = AttributeClassifier(self.attributes_slot)
        self.plate_ocr = PlateOCR(self.ocr_slot)

        self.last_timings: Dict[str, int] = {}

    @property
    def slots(self) -> Tuple[ModelSlot, ModelSlot, ModelSlot]:
        return self.detector_slot, self.attributes_slot, self.ocr_slot

    @property
    def is_ready(self) -> bool:
        return all(slot.is_ready for slot in self.slots)

    async def init(self, progress_callback: Optional[ProgressCallback] = None) -> None:
        """
        Download and load the detector, the attribute classifier and the OCR model, in that order.

        Args:
            progress_callback: Called with (bytes_received, total_bytes) while downloading

        Raises:
            ProvisioningError: If an artifact cannot be downloaded or verified
            ModelLoadingError: If a model fails to load
        """
        for slot in self.slots:
            await slot.ensure_ready(progress_callback)

    def detect(self, image: np.ndarray) -> List[Vehicle]:
        """
        Detect vehicles, classify them, read their plates and attach each plate to its vehicle.

        Args:
            image: Input image as numpy array (BGR format)

        Returns:
            Vehicles in detection order. Plates outside every vehicle are not returned.

        Raises:
            ModelNotReadyError: If init() has not completed
            InferenceError: If a forward pass fails
        """
        start_time = time.perf_counter()

        detections = self.detector.detect(
            image,
            self.config.vehicle_detector_confidence,
            self.config.plate_detector_confidence
        )
        detect_ms = int((time.perf_counter() - start_time) * 1000)

        vehicle_detections, plate_detections = self.detector.split(detections)

        vehicles = []
        for detection in vehicle_detections:
            color, vehicle_type = self.attribute_classifier.classify(image, detection.region)
            vehicles.append(Vehicle(detection.region, color, vehicle_type))
            if self.config.save_debug_images:
                save_debug_image(crop_region(image, detection.region), self.config.debug_images_dir,
                                 prefix="vehicle_crop", suffix=f"{color}_{vehicle_type}")

        plates = []
        for detection in plate_detections:
            text = self.plate_ocr.decode(image, detection.region)
            plates.append(LicensePlate(detection.region, text))
            if self.config.save_debug_images:
                save_debug_image(crop_region(image, detection.region), self.config.debug_images_dir,
                                 prefix="plate_crop", suffix=text)

        unmatched = associate(vehicles, plates, self.config.plate_overlap_ratio)
        if unmatched:
            logger.debug(f"{len(unmatched)} plate(s) matched no vehicle: {[p.text for p in unmatched]}")

        if self.config.save_debug_images and vehicles:
            save_debug_image(image, self.config.debug_images_dir, prefix="final",
                             suffix="result", vehicles=vehicles)

        self.last_timings = {
            "detect_ms": detect_ms,
            "total_ms": int((time.perf_counter() - start_time) * 1000)
        }
        return vehicles

    def render(self, image: np.ndarray, vehicles: List[Vehicle]) -> None:
        """Draw the vehicles and their labels onto the image in place"""
        render_vehicles(image, vehicles)

    def process_and_render(self, image_in: np.ndarray, image_out: np.ndarray) -> str:
        """
        Detect vehicles in image_in and draw the results onto image_out.

        Args:
            image_in: Input image (BGR format)
            image_out: Output image with the same shape and dtype as image_in. It receives
                a copy of image_in unless it is the same array; it is not reallocated.

        Returns:
            Status message with the time spent in the detection stage
        """
        vehicles = self.detect(image_in)
        if image_out is not image_in:
            np.copyto(image_out, image_in)
        self.render(image_out, vehicles)
        return f"Detected in {self.last_timings['detect_ms']} milliseconds."

    def cleanup(self) -> None:
        """
        Release the detector, the attribute classifier and the OCR model, in that order.
        Safe to call more than once.
        """
        for slot in self.slots:
            slot.release()
        logger.info("VLPR system cleanup completed")
