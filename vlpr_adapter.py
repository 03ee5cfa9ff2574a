"""
Adapter for the VLPR system to integrate with CodeProject.AI SDK.
"""
import asyncio
import concurrent.futures
import sys
import threading
import time

import cv2
import numpy as np

from typing import Dict, Any

# Import CodeProject.AI SDK
from codeproject_ai_sdk import RequestData, ModuleRunner, LogMethod, JSON

# Import VLPR system
from vlpr.config import load_from_env
from vlpr.core import VehicleLicensePlateSystem


def _run_coroutine(coro):
    """Run a coroutine to completion on a private event loop in a worker thread"""
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


class VLPRAdapter(ModuleRunner):
    """
    Adapter class to integrate the VLPR system with CodeProject.AI Server.
    """

    def __init__(self):
        """Initialize the VLPR adapter"""
        super().__init__()

        # Load configuration from environment variables
        self.config = load_from_env()

        self.vlpr_system = None

        # Statistics
        self._vehicles_detected = 0
        self._plates_read = 0

        # Requests share the models, so they are processed one at a time
        self._processing_lock = threading.Lock()
        self._last_progress_step = -1

    def _on_download_progress(self, bytes_received: int, total_bytes) -> None:
        if not total_bytes:
            return
        step = int(bytes_received * 4 / total_bytes)
        if step != self._last_progress_step:
            self._last_progress_step = step
            self.log(LogMethod.Info | LogMethod.Server,
            {
                "filename": __file__,
                "loglevel": "information",
                "method": "initialise",
                "message": f"Downloading model: {bytes_received * 100 // total_bytes}%"
            })

    def initialise(self):
        """Initialize the adapter and download/load the models"""
        if self.config.inference_backend == "openvino":
            self.can_use_GPU = self.config.openvino_device != "CPU"
            self.inference_device = "GPU" if self.can_use_GPU else "CPU"
            self.inference_library = "OpenVINO"
        elif self.config.use_directml:
            self.can_use_GPU = True
            self.inference_device = "GPU"
            self.inference_library = "DirectML"
        elif self.config.use_cuda:
            self.can_use_GPU = True
            self.inference_device = "GPU"
            self.inference_library = "CUDA"
        else:
            self.can_use_GPU = False
            self.inference_device = "CPU"
            self.inference_library = "ONNX"

        try:
            self.log(LogMethod.Info | LogMethod.Server,
            {
                "filename": __file__,
                "loglevel": "information",
                "method": sys._getframe().f_code.co_name,
                "message": f"Initializing VLPR system with models from {self.config.models_dir}"
            })

            system = VehicleLicensePlateSystem(self.config)
            _run_coroutine(system.init(self._on_download_progress))
            self.vlpr_system = system

            self.log(LogMethod.Info | LogMethod.Server,
            {
                "filename": __file__,
                "loglevel": "information",
                "method": sys._getframe().f_code.co_name,
                "message": "VLPR system initialized successfully"
            })

        except Exception as ex:
            self.report_error(ex, __file__, f"Error initializing VLPR system: {str(ex)}")
            self.vlpr_system = None

    def process(self, data: RequestData) -> JSON:
        """
        Process a request from CodeProject.AI Server.

        Args:
            data: Request data

        Returns:
            JSON response
        """
        with self._processing_lock:
            try:
                img = data.get_image(0)
                response = self.detect_vehicles(img)
            except Exception as ex:
                response = {"success": False, "error": f"Error processing request: {str(ex)}"}
                self.report_error(ex, __file__, f"Error processing request: {str(ex)}")

        return response

    def detect_vehicles(self, img) -> Dict[str, Any]:
        """
        Detect vehicles and their license plates in an image.

        Args:
            img: Input image as PIL Image (RGB)

        Returns:
            JSON response with detection results
        """
        if self.vlpr_system is None:
            return {"success": False, "error": "VLPR system not initialized"}

        start_process_time = time.perf_counter()

        image_np = np.array(img)
        if len(image_np.shape) == 3 and image_np.shape[2] == 3:
            image_np = cv2.cvtColor(image_np, cv2.COLOR_RGB2BGR)

        vehicles = self.vlpr_system.detect(image_np)
        predictions = [vehicle.as_dict() for vehicle in vehicles]

        self._vehicles_detected += len(vehicles)
        self._plates_read += sum(1 for v in vehicles if v.license_plate is not None)

        if predictions:
            message = f"Found {len(predictions)} vehicles"
            if len(predictions) <= 3:
                message += ": " + ", ".join(p["label"] for p in predictions)
        else:
            message = "No vehicles detected"

        return {
            "success": True,
            "processMs": int((time.perf_counter() - start_process_time) * 1000),
            "inferenceMs": self.vlpr_system.last_timings.get("total_ms", 0),
            "predictions": predictions,
            "message": message,
            "count": len(predictions)
        }

    def status(self) -> JSON:
        """
        Get the status of the VLPR adapter.

        Returns:
            Status information
        """
        statusData = super().status()

        with self._processing_lock:
            statusData["vehiclesDetected"] = self._vehicles_detected
            statusData["platesRead"] = self._plates_read

        return statusData

    def selftest(self) -> JSON:
        """Model loading in initialise() is the real test"""
        return {
            "success": True,
            "message": "VLPR module loaded"
        }

    def cleanup(self):
        """
        Clean up resources when the adapter is shutting down.
        """
        if self.vlpr_system is not None:
            self.vlpr_system.cleanup()
            self.vlpr_system = None

        self.log(LogMethod.Info | LogMethod.Server,
        {
            "filename": __file__,
            "loglevel": "information",
            "method": sys._getframe().f_code.co_name,
            "message": "VLPR adapter cleanup completed"
        })


if __name__ == "__main__":
    VLPRAdapter().start_loop()
