from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import numpy as np
from loguru import logger

from ..errors import InitializationError
from .base import NetworkHandle


PathLike = Union[str, Path]

# Preference names -> cv2.dnn constant names. Not every OpenCV build has all of them.
BACKENDS = {
    "default": "DNN_BACKEND_DEFAULT",
    "opencv": "DNN_BACKEND_OPENCV",
    "cuda": "DNN_BACKEND_CUDA",
    "inference_engine": "DNN_BACKEND_INFERENCE_ENGINE",
    "halide": "DNN_BACKEND_HALIDE",
    "vkcom": "DNN_BACKEND_VKCOM",
    "timvx": "DNN_BACKEND_TIMVX",
    "cann": "DNN_BACKEND_CANN",
}

TARGETS = {
    "cpu": "DNN_TARGET_CPU",
    "opencl": "DNN_TARGET_OPENCL",
    "opencl_fp16": "DNN_TARGET_OPENCL_FP16",
    "myriad": "DNN_TARGET_MYRIAD",
    "vulkan": "DNN_TARGET_VULKAN",
    "fpga": "DNN_TARGET_FPGA",
    "cuda": "DNN_TARGET_CUDA",
    "cuda_fp16": "DNN_TARGET_CUDA_FP16",
    "hddl": "DNN_TARGET_HDDL",
    "npu": "DNN_TARGET_NPU",
}


def _resolve_preference(value: Union[str, int], table: dict, kind: str) -> int:
    import cv2  # type: ignore

    if isinstance(value, int) and not isinstance(value, bool):
        return value
    key = str(value).strip().lower()
    if key not in table:
        raise ValueError(f"Unknown {kind} {value!r}. Expected one of: {sorted(table)}")
    const = getattr(cv2.dnn, table[key], None)
    if const is None:
        raise InitializationError(f"This OpenCV build does not provide cv2.dnn.{table[key]}")
    return int(const)


def resolve_backend(value: Union[str, int]) -> int:
    return _resolve_preference(value, BACKENDS, "backend")


def resolve_target(value: Union[str, int]) -> int:
    return _resolve_preference(value, TARGETS, "target")


@dataclass(frozen=True)
class OpenCVDnnConfig:
    """
    Configuration for cv2.dnn inference.

    - backend / target: preference names (see BACKENDS / TARGETS) or raw cv2.dnn constants
    """

    backend: Union[str, int] = "cuda"
    target: Union[str, int] = "cuda"


class OpenCVDnnNetwork(NetworkHandle):
    """
    cv2.dnn network: Darknet (.cfg + .weights) or anything `cv2.dnn.readNet` accepts.

    Output layer names are read once here and reused for every forward pass.
    """

    backend_name = "opencv"

    def __init__(
        self,
        model_config: PathLike,
        model_weights: Optional[PathLike] = None,
        cfg: OpenCVDnnConfig = OpenCVDnnConfig(),
    ):
        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for the cv2.dnn backend. Install with `pip install opencv-python`.") from e

        self.model_config = Path(model_config)
        self.model_weights = Path(model_weights) if model_weights is not None else None
        for path in (self.model_config, self.model_weights):
            if path is not None and not path.exists():
                raise FileNotFoundError(str(path))

        backend = resolve_backend(cfg.backend)
        target = resolve_target(cfg.target)

        logger.info(f"Loading cv2.dnn network: {self.model_config} (weights: {self.model_weights})")
        try:
            if self.model_weights is not None and self.model_config.suffix.lower() == ".cfg":
                net = cv2.dnn.readNetFromDarknet(str(self.model_config), str(self.model_weights))
            elif self.model_weights is not None:
                net = cv2.dnn.readNet(str(self.model_weights), str(self.model_config))
            else:
                net = cv2.dnn.readNet(str(self.model_config))
            net.setPreferableBackend(backend)
            net.setPreferableTarget(target)
            output_names = list(net.getUnconnectedOutLayersNames())
        except cv2.error as e:
            raise InitializationError(f"Failed to load network {self.model_config}: {e}") from e

        if net.empty():
            raise InitializationError(f"cv2.dnn returned an empty network for {self.model_config}")

        super().__init__(output_names)
        self.net = net
        logger.info(f"cv2.dnn network ready: backend={cfg.backend} target={cfg.target} outputs={output_names}")

    def _forward(self, blob: np.ndarray) -> List[np.ndarray]:
        self.net.setInput(blob)
        if self.output_names:
            return list(self.net.forward(list(self.output_names)))
        return [self.net.forward()]
