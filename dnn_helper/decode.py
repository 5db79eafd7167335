from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import ShapeError
from .types import Box, Detection


# Columns 0-3 of every row: normalized (center_x, center_y, width, height).
GEOMETRY_COLUMNS = 4


def passes_confidence(confidence: float, threshold: float) -> bool:
    """
    A candidate survives iff its confidence reaches the threshold (inclusive).
    """
    return confidence >= threshold


def check_confidence_threshold(threshold: float) -> float:
    threshold = float(threshold)
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"confidence_threshold must be in [0, 1], got {threshold}")
    return threshold


def _as_rows(output: np.ndarray) -> np.ndarray:
    p = np.asarray(output)
    if p.ndim == 3:
        if p.shape[0] != 1:
            raise ShapeError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
        p = p[0]
    if p.ndim != 2:
        raise ShapeError(f"Expected a 2-D output tensor (rows, 4 + classes), got shape {p.shape}")
    return p


def decode_output(
    output: np.ndarray,
    image_size: Tuple[int, int],
    confidence_threshold: float,
    *,
    skip_objectness: bool = False,
    class_ids: Optional[Sequence[int]] = None,
) -> List[Detection]:
    """
    Decode one raw detection head into candidates in original image coordinates.

    Each row is `[cx, cy, w, h, score_0, ..., score_C-1]` with normalized
    geometry. The most likely class score is used as-is as the confidence;
    no objectness term is multiplied in.

    Args:
        output: (rows, 4 + C) array, or (1, rows, 4 + C). Never modified.
        image_size: (width, height) of the original image.
        confidence_threshold: rows scoring below this are dropped.
        skip_objectness: Darknet region layers emit an objectness column at
            index 4; when True it is ignored and class scores start at 5.
        class_ids: optional whitelist of class ids to keep.

    Returns candidates in row order.
    """

    confidence_threshold = check_confidence_threshold(confidence_threshold)
    p = _as_rows(output)

    first_score = GEOMETRY_COLUMNS + (1 if skip_objectness else 0)
    if p.shape[1] <= first_score:
        raise ShapeError(
            f"Output has {p.shape[1]} columns; need at least {first_score + 1} "
            f"({first_score} leading columns + 1 class score)."
        )
    if p.shape[0] == 0:
        return []

    class_scores = p[:, first_score:]
    best_class = np.argmax(class_scores, axis=1)
    best_score = class_scores[np.arange(p.shape[0]), best_class]

    # Filter before touching geometry
    keep = best_score >= confidence_threshold
    if class_ids is not None:
        keep &= np.isin(best_class, np.asarray(list(class_ids), dtype=np.int64))
    rows = np.flatnonzero(keep)
    if rows.size == 0:
        return []

    image_w, image_h = float(image_size[0]), float(image_size[1])
    scale = np.array([image_w, image_h, image_w, image_h], dtype=np.float64)
    geometry = p[rows, :GEOMETRY_COLUMNS].astype(np.float64) * scale

    cx, cy, w_box, h_box = geometry.T
    w_box = np.maximum(w_box, 0.0)
    h_box = np.maximum(h_box, 0.0)
    x = cx - w_box / 2
    y = cy - h_box / 2

    return [
        Detection(
            class_id=int(cls_id),
            confidence=float(score),
            box=Box(x=float(bx), y=float(by), width=float(bw), height=float(bh)),
        )
        for bx, by, bw, bh, score, cls_id in zip(x, y, w_box, h_box, best_score[rows], best_class[rows])
    ]


def decode_outputs(
    outputs: Iterable[np.ndarray],
    image_size: Tuple[int, int],
    confidence_threshold: float,
    *,
    skip_objectness: bool = False,
    class_ids: Optional[Sequence[int]] = None,
) -> List[Detection]:
    """
    Decode every detection head of one forward pass and pool the candidates,
    keeping head order and then row order.
    """

    pooled: List[Detection] = []
    for output in outputs:
        pooled.extend(
            decode_output(
                output,
                image_size,
                confidence_threshold,
                skip_objectness=skip_objectness,
                class_ids=class_ids,
            )
        )
    return pooled
