from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .classifier import ImageClassifier
from .detector import ObjectDetector


@dataclass(frozen=True)
class DetectorProfile:
    """
    Everything needed to build a classifier or detector from files on disk.
    """

    schema_version: int
    model_config: Path
    input_width: int
    input_height: int
    confidence_threshold: float
    model_weights: Optional[Path] = None
    backend: str = "cuda"
    target: str = "cuda"
    nms_iou_threshold: float = 0.2
    top_k: int = 300
    skip_objectness: bool = False
    class_names: Optional[Path] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("detector profile schema_version must be 1")
        if self.input_width <= 0 or self.input_height <= 0:
            raise ValueError("input_width and input_height must be > 0")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.nms_iou_threshold <= 1.0:
            raise ValueError("nms_iou_threshold must be in [0, 1]")
        if self.top_k < 1:
            raise ValueError("top_k must be >= 1")

    @property
    def input_size(self) -> Tuple[int, int]:
        return self.input_width, self.input_height


def _require_number(payload: Dict[str, Any], key: str) -> float:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    return _number(payload, key)


def _number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    return _int(payload, key)


def _int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _optional_str(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} must be a string if provided")
    return value


def _optional_path(payload: Dict[str, Any], key: str, base: Path) -> Optional[Path]:
    value = _optional_str(payload, key)
    if value is None:
        return None
    p = Path(value)
    return p if p.is_absolute() else (base / p).resolve()


def load_detector_profile(path: Path) -> DetectorProfile:
    """
    Read a JSON detector profile. Relative model paths resolve against the
    profile's own directory.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector profile must be a JSON object")

    allowed = {
        "schema_version",
        "model_config",
        "model_weights",
        "input_width",
        "input_height",
        "backend",
        "target",
        "confidence_threshold",
        "nms_iou_threshold",
        "top_k",
        "skip_objectness",
        "class_names",
        "notes",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector profile keys: {unknown}")

    base = path.resolve().parent
    model_config = _optional_path(payload, "model_config", base)
    if model_config is None:
        raise ValueError("Missing required key: model_config")

    skip_objectness = payload.get("skip_objectness", False)
    if not isinstance(skip_objectness, bool):
        raise ValueError("skip_objectness must be a boolean")

    return DetectorProfile(
        schema_version=_require_int(payload, "schema_version"),
        model_config=model_config,
        model_weights=_optional_path(payload, "model_weights", base),
        input_width=_require_int(payload, "input_width"),
        input_height=_require_int(payload, "input_height"),
        backend=_optional_str(payload, "backend") or "cuda",
        target=_optional_str(payload, "target") or "cuda",
        confidence_threshold=_require_number(payload, "confidence_threshold"),
        nms_iou_threshold=_number(payload, "nms_iou_threshold") if "nms_iou_threshold" in payload else 0.2,
        top_k=_int(payload, "top_k") if "top_k" in payload else 300,
        skip_objectness=skip_objectness,
        class_names=_optional_path(payload, "class_names", base),
        notes=_optional_str(payload, "notes"),
    )


def build_detector(profile: DetectorProfile) -> ObjectDetector:
    detector = ObjectDetector(skip_objectness=profile.skip_objectness)
    detector.initialize(
        profile.model_config,
        profile.model_weights,
        profile.input_size,
        profile.backend,
        profile.target,
        root=None,
    )
    return detector


def build_classifier(profile: DetectorProfile) -> ImageClassifier:
    classifier = ImageClassifier()
    classifier.initialize(
        profile.model_config,
        profile.model_weights,
        profile.input_size,
        profile.backend,
        profile.target,
        root=None,
    )
    return classifier
