"""
Inference engine interface shared by the OpenVINO and ONNX Runtime backends.
"""
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from ..utils.image_processing import BlobParams


@dataclass
class ModelHandle:
    """
    An engine-owned model instance.

    Inputs set with InferenceEngine.set_input() stay bound to the handle until
    overwritten, so an auxiliary input fed once after loading is reused by every
    later forward pass. The lock must be held across set_input() and forward().
    """
    model_path: str
    config_path: Optional[str]
    backend: Any
    input_names: List[str] = field(default_factory=list)
    output_names: List[str] = field(default_factory=list)
    bound_inputs: Dict[Union[str, int], np.ndarray] = field(default_factory=dict)
    input_params: Optional[BlobParams] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    released: bool = False


class InferenceEngine:
    """
    Base class for inference backends.

    Subclasses implement load(), set_input(), forward() and release().
    """

    name = "base"

    def load(self, model_path: str, config_path: Optional[str] = None) -> ModelHandle:
        """
        Load a model.

        Args:
            model_path: Path to the weights file
            config_path: Optional path to the network description file

        Returns:
            Handle to the loaded model

        Raises:
            ModelLoadingError: If the model cannot be loaded
        """
        raise NotImplementedError

    def set_input(self, handle: ModelHandle, tensor: np.ndarray, input_name: Optional[str] = None) -> None:
        raise NotImplementedError

    def forward(self, handle: ModelHandle, output_names: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        raise NotImplementedError

    def release(self, handle: ModelHandle) -> None:
        raise NotImplementedError

    def run(self, handle: ModelHandle, inputs: Dict[Optional[str], np.ndarray],
            output_names: Optional[Sequence[str]] = None) -> List[np.ndarray]:
        """Set the given inputs and run a forward pass while holding the handle lock"""
        with handle.lock:
            for input_name, tensor in inputs.items():
                self.set_input(handle, tensor, input_name)
            return self.forward(handle, output_names)
