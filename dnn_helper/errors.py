"""
Exceptions raised by dnn_helper.

Errors coming out of the inference engine itself (OpenCV, ONNX Runtime) are not
wrapped here; they propagate unchanged from `NetworkHandle.forward`.
"""


class DNNHelperError(Exception):
    """Base class for all dnn_helper errors."""


class NotInitializedError(DNNHelperError, RuntimeError):
    """Inference was requested before a network was initialized."""


class ShapeError(DNNHelperError, ValueError):
    """A network output does not have the layout the decoder expects."""


class InitializationError(DNNHelperError, RuntimeError):
    """The model could not be loaded or bound to the requested backend."""
