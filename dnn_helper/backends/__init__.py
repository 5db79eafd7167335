"""
Inference backends for dnn_helper.

Every backend implements `NetworkHandle`. The ONNX Runtime backend is imported
lazily so the core (decode / NMS) works without inference runtimes installed.
"""

from __future__ import annotations

from .base import CallableNetwork, NetworkHandle

__all__ = ["CallableNetwork", "NetworkHandle"]
