import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from .geometry import box_iou
from .types import Detection


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    # None keeps every surviving box.
    max_detections: Optional[int] = None


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes, highest score first.

    Ties in score keep input order. A candidate is dropped once its IoU with an
    accepted box reaches `iou_threshold`.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if boxes.shape[0] == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = int(order[0])
        keep.append(i)

        rest = order[1:]
        overlaps = box_iou(boxes[i], boxes[rest])
        order = rest[overlaps < cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(
    detections: Sequence[Detection],
    iou_threshold: float,
    *,
    class_agnostic: bool = True,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    """
    Remove duplicate detections with greedy NMS.

    By default suppression crosses labels: a confident box of one class removes
    an overlapping weaker box of another class. With `class_agnostic=False`
    each label is suppressed on its own and the survivors are merged by
    confidence.
    """

    dets = list(detections)
    if not dets:
        return []

    boxes = np.array([d.as_xyxy() for d in dets], dtype=np.float64)
    scores = np.array([d.confidence for d in dets], dtype=np.float64)
    cfg = NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections)

    if class_agnostic:
        keep_idx = nms(boxes, scores, cfg).tolist()
    else:
        by_label: Dict[str, List[int]] = {}
        for idx, det in enumerate(dets):
            by_label.setdefault(det.label, []).append(idx)

        kept: List[int] = []
        for idx in by_label.values():
            idx_arr = np.array(idx, dtype=np.int64)
            keep_local = nms(boxes[idx_arr], scores[idx_arr], NMSConfig(iou_threshold=iou_threshold))
            kept.extend(idx_arr[keep_local].tolist())

        # merge back in score order, input order on ties
        kept.sort()
        kept.sort(key=lambda k: -scores[k])
        keep_idx = kept if max_detections is None else kept[:max_detections]

    logger.debug("NMS kept %d of %d detections (iou_threshold=%.3f)", len(keep_idx), len(dets), iou_threshold)
    return [dets[i] for i in keep_idx]
