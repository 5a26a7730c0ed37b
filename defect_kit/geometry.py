from typing import Sequence

import numpy as np

from .types import Rect


IOU_EPS = 1e-6


def box_iou(box: Sequence[float], boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one xyxy box against an (N, 4) array of xyxy boxes.

    The union is floored at IOU_EPS so zero-area boxes give 0 instead of NaN.
    """

    b = np.asarray(box, dtype=np.float64)
    others = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if others.shape[0] == 0:
        return np.empty((0,), dtype=np.float64)

    xx1 = np.maximum(b[0], others[:, 0])
    yy1 = np.maximum(b[1], others[:, 1])
    xx2 = np.minimum(b[2], others[:, 2])
    yy2 = np.minimum(b[3], others[:, 3])

    w = np.maximum(0.0, xx2 - xx1)
    h = np.maximum(0.0, yy2 - yy1)
    inter = w * h

    area = (b[2] - b[0]) * (b[3] - b[1])
    areas = (others[:, 2] - others[:, 0]) * (others[:, 3] - others[:, 1])
    union = area + areas - inter
    return inter / np.maximum(union, IOU_EPS)


def iou(rect_a: Rect, rect_b: Rect) -> float:
    """Intersection over union of two rectangles, in [0, 1]."""
    return float(box_iou(rect_a.as_xyxy(), np.array([rect_b.as_xyxy()]))[0])
