from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
from loguru import logger

from ..errors import InitializationError
from .base import NetworkHandle


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name / output_names: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_names: Optional[Sequence[str]] = None


class OnnxRuntimeNetwork(NetworkHandle):
    """
    ONNX Runtime network. Expects an NCHW float32 blob shaped (1, 3, H, W) and
    returns every selected output.
    """

    backend_name = "onnxruntime"

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeConfig = OnnxRuntimeConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        logger.info(f"Loading ONNX Runtime session: {self.model_path}")
        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(
                str(self.model_path), sess_options=ort.SessionOptions(), providers=providers
            )
        except Exception as e:
            raise InitializationError(f"Failed to create ONNX Runtime session for {self.model_path}: {e}") from e

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        available = [o.name for o in self.session.get_outputs()]
        if cfg.output_names:
            missing = [n for n in cfg.output_names if n not in available]
            if missing:
                raise InitializationError(f"Output names {missing} not found. Available: {available}")
            output_names = list(cfg.output_names)
        else:
            output_names = available

        super().__init__(output_names)
        logger.info(f"ONNX Runtime session ready: providers={self.providers_in_use} outputs={output_names}")

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def _forward(self, blob: np.ndarray) -> List[np.ndarray]:
        return list(self.session.run(list(self.output_names), {self.input_name: blob}))
