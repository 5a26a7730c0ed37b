from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle in image-pixel coordinates (top-left origin).
    """

    x: float
    y: float
    width: float
    height: float

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height


@dataclass(frozen=True)
class Detection:
    """
    Labeled detection produced by the decoder. Confidence is a fraction in [0, 1].
    """

    label: str
    confidence: float
    rect: Rect

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.rect.as_xyxy()
