"""
Helpers that turn raw object-detection / classification network output into
labeled, deduplicated results.

The decode / NMS core only needs NumPy; OpenCV is used for preprocessing and
the cv2.dnn backend.
"""

from .types import Box, ClassificationResult, Detection
from .errors import DNNHelperError, InitializationError, NotInitializedError, ShapeError
from .decode import decode_output, decode_outputs, passes_confidence
from .nms import NMSConfig, iou, nms, suppress
from .preprocess import blob_from_image
from .backends import CallableNetwork, NetworkHandle
from .runtime import load_network, resolve_path
from .detector import ObjectDetector
from .classifier import ImageClassifier
from .config import DetectorProfile, build_classifier, build_detector, load_detector_profile
from .metadata import load_class_names

__all__ = [
    "Box",
    "ClassificationResult",
    "Detection",
    "DNNHelperError",
    "InitializationError",
    "NotInitializedError",
    "ShapeError",
    "decode_output",
    "decode_outputs",
    "passes_confidence",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "blob_from_image",
    "CallableNetwork",
    "NetworkHandle",
    "load_network",
    "resolve_path",
    "ObjectDetector",
    "ImageClassifier",
    "DetectorProfile",
    "build_classifier",
    "build_detector",
    "load_detector_profile",
    "load_class_names",
]
