from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .backends.base import NetworkHandle
from .decode import check_confidence_threshold, decode_outputs
from .nms import NMSConfig, suppress
from .runtime import NetworkFrontEnd
from .types import Detection


class ObjectDetector(NetworkFrontEnd):
    """
    Multi-object detector: preprocess -> forward -> decode + filter -> NMS.

    Expects BGR images (OpenCV-style) and returns detections in original image
    coordinates, most confident first.
    """

    def __init__(
        self,
        network: Optional[NetworkHandle] = None,
        input_size: Tuple[int, int] = (416, 416),
        *,
        skip_objectness: bool = False,
        class_ids: Optional[Sequence[int]] = None,
        class_agnostic: bool = True,
    ):
        super().__init__(network, input_size)
        self.skip_objectness = skip_objectness
        self.class_ids = class_ids
        self.class_agnostic = class_agnostic

    def detect(
        self,
        image_bgr: np.ndarray,
        confidence_threshold: float,
        nms_iou_threshold: float = 0.2,
        top_k: int = 300,
    ) -> List[Detection]:
        confidence_threshold = check_confidence_threshold(confidence_threshold)
        nms_cfg = NMSConfig(iou_threshold=nms_iou_threshold, top_k=top_k, class_agnostic=self.class_agnostic)

        outputs, orig_size = self._infer(image_bgr)
        candidates = decode_outputs(
            outputs,
            orig_size,
            confidence_threshold,
            skip_objectness=self.skip_objectness,
            class_ids=self.class_ids,
        )
        detections = suppress(candidates, nms_cfg)
        logger.debug(
            f"detect: {len(outputs)} output(s), {len(candidates)} candidate(s), {len(detections)} kept"
        )
        return detections
