from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import Box, Detection


@dataclass
class NMSConfig:
    iou_threshold: float = 0.2
    top_k: int = 300
    # False runs NMS per class, then merges results by score.
    class_agnostic: bool = True

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")
        if isinstance(self.top_k, bool) or int(self.top_k) != self.top_k or self.top_k < 1:
            raise ValueError(f"top_k must be a positive integer, got {self.top_k}")
        self.top_k = int(self.top_k)


def iou(a: Box, b: Box) -> float:
    """
    Intersection-over-Union of two xywh boxes; 0.0 when they do not overlap.
    """

    ax1, ay1, ax2, ay2 = a.as_xyxy()
    bx1, by1, bx2, by2 = b.as_xyxy()
    iw = max(0.0, min(ax2, bx2) - max(ax1, bx1))
    ih = max(0.0, min(ay2, by2) - max(ay1, by1))
    inter = iw * ih
    if inter <= 0.0:
        return 0.0
    union = a.area + b.area - inter
    return inter / union if union > 0.0 else 0.0


def _greedy(x1: np.ndarray, y1: np.ndarray, x2: np.ndarray, y2: np.ndarray, order: np.ndarray, cfg: NMSConfig) -> List[int]:
    areas = np.maximum(0.0, x2 - x1) * np.maximum(0.0, y2 - y1)
    keep: List[int] = []

    while order.size > 0 and len(keep) < cfg.top_k:
        i = int(order[0])
        keep.append(i)

        rest = order[1:]
        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
        union = areas[i] + areas[rest] - inter
        overlap = np.divide(inter, union, out=np.zeros_like(inter), where=union > 0.0)

        order = rest[overlap < cfg.iou_threshold]

    return keep


def _descending(scores: np.ndarray) -> np.ndarray:
    # Stable: equal scores keep their encounter order.
    return np.argsort(-scores, kind="stable")


def nms(
    boxes: np.ndarray,
    scores: np.ndarray,
    cfg: NMSConfig,
    class_ids: Optional[np.ndarray] = None,
) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N, 4) in xywh and scores shape (N,).

    A box is dropped when its IoU with an already kept box is >= the threshold.
    Returns indices of kept boxes, highest score first, at most `cfg.top_k`.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"boxes and scores disagree: {boxes.shape[0]} vs {scores.shape[0]}")
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.int32)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = x1 + boxes[:, 2]
    y2 = y1 + boxes[:, 3]

    if cfg.class_agnostic:
        return np.array(_greedy(x1, y1, x2, y2, _descending(scores), cfg), dtype=np.int32)

    if class_ids is None:
        raise ValueError("class_ids are required when class_agnostic is False")
    class_ids = np.asarray(class_ids).reshape(-1)

    kept: List[int] = []
    for cls in np.unique(class_ids):
        idx = np.flatnonzero(class_ids == cls)
        local = _greedy(x1[idx], y1[idx], x2[idx], y2[idx], _descending(scores[idx]), cfg)
        kept.extend(idx[local].tolist())

    merged = np.array(sorted(kept), dtype=np.int32)
    merged = merged[_descending(scores[merged])]
    return merged[: cfg.top_k]


def suppress(candidates: Sequence[Detection], cfg: NMSConfig) -> List[Detection]:
    """
    Run NMS over pooled candidates and return the survivors, most confident first.
    """

    if not candidates:
        return []

    boxes = np.array([c.box.as_xywh() for c in candidates], dtype=np.float64)
    scores = np.array([c.confidence for c in candidates], dtype=np.float64)
    class_ids = np.array([c.class_id for c in candidates], dtype=np.int64)

    keep = nms(boxes, scores, cfg, class_ids=class_ids)
    return [candidates[i] for i in keep]
