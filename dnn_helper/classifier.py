from __future__ import annotations

import numpy as np
from loguru import logger

from .errors import ShapeError
from .runtime import NetworkFrontEnd
from .types import ClassificationResult


class ImageClassifier(NetworkFrontEnd):
    """
    Single-label whole-image classifier (e.g. Darknet classification models).
    """

    def classify(self, image_bgr: np.ndarray) -> ClassificationResult:
        """
        Return the class with the highest score over the flattened first output.
        """

        outputs, _ = self._infer(image_bgr)
        if not outputs:
            raise ShapeError("Network returned no outputs.")
        scores = np.asarray(outputs[0]).reshape(-1)
        if scores.size == 0:
            raise ShapeError("Network returned an empty output tensor.")

        class_id = int(np.argmax(scores))
        result = ClassificationResult(class_id=class_id, confidence=float(scores[class_id]))
        logger.debug(f"classify: class_id={result.class_id} confidence={result.confidence:.4f}")
        return result
