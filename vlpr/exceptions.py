"""
Exception classes for the vehicle and license plate recognition system.
Provides specialized exceptions for different error conditions.
"""
from typing import Optional, Any


class VLPRException(Exception):
    """Base exception for all VLPR-related errors"""
    def __init__(self, message: str, *args: Any):
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(VLPRException):
    """Exception raised for configuration-related errors"""
    pass


class ProvisioningError(VLPRException):
    """Exception raised when a model artifact cannot be fetched or verified"""
    def __init__(self, url: Optional[str], reason: str, original_error: Optional[Exception] = None):
        message = f"Failed to provision {url or 'local artifact'}: {reason}"
        if original_error:
            message += f" ({str(original_error)})"
        super().__init__(message)
        self.url = url
        self.reason = reason
        self.original_error = original_error


class ModelLoadingError(VLPRException):
    """Exception raised when a model fails to load"""
    def __init__(self, model_path: str, original_error: Optional[Exception] = None):
        message = f"Failed to load model from {model_path}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(message)
        self.model_path = model_path
        self.original_error = original_error


class ModelNotReadyError(VLPRException):
    """Exception raised when inference is requested before a model slot is ready"""
    def __init__(self, slot_name: str):
        super().__init__(f"Model '{slot_name}' is not initialized, call init() first")
        self.slot_name = slot_name


class InferenceError(VLPRException):
    """Exception raised when inference fails"""
    def __init__(self, model_name: str, original_error: Optional[Exception] = None):
        message = f"Inference failed for model {model_name}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(message)
        self.model_name = model_name
        self.original_error = original_error


class ImageProcessingError(VLPRException):
    """Exception raised for image processing errors"""
    def __init__(self, operation: str, original_error: Optional[Exception] = None):
        message = f"Image processing operation '{operation}' failed"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(message)
        self.operation = operation
        self.original_error = original_error
