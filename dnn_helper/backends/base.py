"""
Base class for network handles.

Front-ends only ever talk to a `NetworkHandle`: feed a blob, get back the list
of raw output tensors. Subclasses load the model in `__init__` and implement
`_forward()`.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Sequence, Tuple, Union

import numpy as np


InferResult = Union[np.ndarray, Sequence[np.ndarray]]


class NetworkHandle:
    """
    A loaded model bound to its execution backend.

    `forward()` is serialized with a lock: engines are not assumed to be
    thread-safe, so concurrent callers sharing one handle take turns.
    """

    backend_name: str = "abstract"

    def __init__(self, output_names: Sequence[str] = ()):
        self._lock = threading.Lock()
        self._output_names: Tuple[str, ...] = tuple(output_names)

    @property
    def output_names(self) -> Tuple[str, ...]:
        return self._output_names

    def forward(self, blob: np.ndarray) -> List[np.ndarray]:
        with self._lock:
            outputs = self._forward(blob)
        if isinstance(outputs, np.ndarray):
            return [outputs]
        return [np.asarray(o) for o in outputs]

    def _forward(self, blob: np.ndarray) -> InferResult:
        raise NotImplementedError("Subclasses must implement the _forward() method.")


class CallableNetwork(NetworkHandle):
    """
    Adapts any `infer(blob) -> array | list of arrays` function to a handle.
    """

    backend_name = "callable"

    def __init__(self, infer_fn: Callable[[np.ndarray], InferResult], output_names: Sequence[str] = ()):
        super().__init__(output_names)
        self._infer_fn = infer_fn

    def _forward(self, blob: np.ndarray) -> InferResult:
        return self._infer_fn(blob)
