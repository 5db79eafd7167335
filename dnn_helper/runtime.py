from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from .backends.base import NetworkHandle
from .errors import NotInitializedError
from .preprocess import blob_from_image


PathLike = Union[str, Path]


def resolve_path(path: PathLike, root: Optional[PathLike] = None) -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`,
    or the current working directory when `root` is None.
    """

    p = Path(path)
    if p.is_absolute():
        return p
    base = Path(root) if root is not None else Path.cwd()
    return (base / p).resolve()


def load_network(
    model_path: PathLike,
    weights_path: Optional[PathLike] = None,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = None,
    backend_preference: Union[str, int] = "cuda",
    target_preference: Union[str, int] = "cuda",
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_names: Optional[Sequence[str]] = None,
) -> NetworkHandle:
    """
    Create a network handle for a model on disk.

    Args:
        model_path: Darknet .cfg, .onnx, or any file cv2.dnn can read
        weights_path: Darknet .weights (or other framework weights) paired with model_path
        backend: "opencv" or "onnxruntime"; None infers it from the extension
        root: base directory for relative paths; None means the current directory
        backend_preference / target_preference: cv2.dnn backend and target names
    """

    resolved = resolve_path(model_path, root=root)
    resolved_weights = resolve_path(weights_path, root=root) if weights_path is not None else None

    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx" and resolved_weights is None:
            chosen = "onnxruntime"
        elif suffix in {".cfg", ".prototxt", ".pb", ".onnx", ".xml"}:
            chosen = "opencv"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    if chosen == "opencv":
        from .backends.opencv_backend import OpenCVDnnConfig, OpenCVDnnNetwork

        return OpenCVDnnNetwork(
            resolved,
            resolved_weights,
            OpenCVDnnConfig(backend=backend_preference, target=target_preference),
        )

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeConfig, OnnxRuntimeNetwork

        return OnnxRuntimeNetwork(
            resolved,
            OnnxRuntimeConfig(
                providers=onnx_providers,
                input_name=onnx_input_name,
                output_names=onnx_output_names,
            ),
        )

    raise ValueError(f"Unsupported backend: {backend!r}")


class NetworkFrontEnd:
    """
    Shared plumbing of the classifier and the detector: owns one network handle
    plus the input size its blobs are built at.

    The handle is either injected at construction or created by `initialize()`;
    there is no other way to swap the model.
    """

    def __init__(self, network: Optional[NetworkHandle] = None, input_size: Tuple[int, int] = (416, 416)):
        self._network = network
        self._input_size = (int(input_size[0]), int(input_size[1]))

    @property
    def initialized(self) -> bool:
        return self._network is not None

    @property
    def network(self) -> Optional[NetworkHandle]:
        return self._network

    @property
    def input_size(self) -> Tuple[int, int]:
        return self._input_size

    def initialize(
        self,
        model_config: PathLike,
        model_weights: Optional[PathLike],
        input_size: Tuple[int, int],
        backend_preference: Union[str, int] = "cuda",
        target_preference: Union[str, int] = "cuda",
        *,
        root: Optional[PathLike] = None,
    ) -> None:
        """
        Load a model and bind it to the requested cv2.dnn backend/target.
        Loading failures leave the previous state untouched.
        """

        network = load_network(
            model_config,
            model_weights,
            backend="opencv",
            root=root,
            backend_preference=backend_preference,
            target_preference=target_preference,
        )
        if self._network is not None:
            logger.warning(f"Replacing loaded {self._network.backend_name} network with {model_config}")
        self._network = network
        self._input_size = (int(input_size[0]), int(input_size[1]))

    def _infer(self, image_bgr: np.ndarray) -> Tuple[List[np.ndarray], Tuple[int, int]]:
        if self._network is None:
            raise NotInitializedError(f"{type(self).__name__} has no network; call initialize() first.")
        blob = blob_from_image(image_bgr, self._input_size)
        orig_h, orig_w = image_bgr.shape[:2]
        return self._network.forward(blob), (orig_w, orig_h)
