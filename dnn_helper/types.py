from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned rectangle in pixel coordinates of the original image.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass
class Detection:
    """
    One detected object. The decoder emits these as candidates; the ones that
    survive suppression are returned to the caller.
    """

    class_id: int
    confidence: float
    box: Box


@dataclass(frozen=True)
class ClassificationResult:
    class_id: int
    confidence: float
