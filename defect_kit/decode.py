import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .activations import sigmoid, softmax
from .types import Detection, Rect


logger = logging.getLogger(__name__)

# [x, y, w, h, objectness] precede the class scores in every box row.
BOX_CHANNELS = 5
# Boxes inspected by the all-zero class score guard.
SAMPLE_BOXES = 10


@dataclass(frozen=True)
class DecodeStats:
    boxes: int
    channels: int
    passed_objectness: int
    passed_confidence: int


def _as_rows(tensor, shape: Optional[Sequence[int]]) -> Optional[Tuple[np.ndarray, int, int]]:
    """
    Validate the raw tensor and view it as (N, C) rows.

    The buffer is read flat: box `b`, channel `c` sits at offset `b*C + c`,
    whatever the declared [1, C, N] shape says about axis order.
    """

    try:
        arr = np.asarray(tensor, dtype=np.float64)
        dims = tuple(int(d) for d in shape) if shape is not None else tuple(arr.shape)
    except (TypeError, ValueError) as exc:
        logger.warning("Unreadable tensor buffer or shape: %s", exc)
        return None

    if len(dims) != 3:
        logger.warning("Unexpected tensor shape %s: expected [1, channels, boxes]", dims)
        return None

    batch, channels, boxes = dims
    if batch < 1 or channels < 1 or boxes < 0:
        logger.warning("Invalid tensor shape %s", dims)
        return None

    flat = arr.reshape(-1)
    if flat.size != batch * channels * boxes:
        logger.warning("Tensor buffer has %d values but shape %s needs %d", flat.size, dims, batch * channels * boxes)
        return None
    if batch > 1:
        logger.warning("Batch of %d not supported, decoding the first image only", batch)

    rows = flat[: channels * boxes].reshape(boxes, channels)
    return rows, channels, boxes


def _has_class_signal(rows: np.ndarray) -> bool:
    sample = rows[:SAMPLE_BOXES, BOX_CHANNELS:]
    nonzero = int(np.count_nonzero(sample))
    if sample.size:
        logger.debug(
            "Raw class score range: [%s, %s], non-zero: %d",
            float(np.min(sample)),
            float(np.max(sample)),
            nonzero,
        )
    if nonzero == 0:
        logger.info("All sampled class scores are zero; model output looks untrained")
        return False
    return True


def decode(
    tensor,
    image_width: float,
    image_height: float,
    labels: Sequence[str],
    confidence_threshold: float,
    *,
    shape: Optional[Sequence[int]] = None,
) -> List[Detection]:
    """
    Decode a raw single-scale detector output into detections.

    Args:
        tensor: model output shaped [1, 5 + num_classes, N], or a flat buffer with `shape`
        image_width / image_height: original image size in pixels
        labels: class names aligned with the class score channels
        confidence_threshold: minimum objectness and minimum final confidence
        shape: logical shape for a flat buffer

    Returns candidates sorted by confidence (highest first, stable). Malformed
    input is logged and yields an empty list.
    """

    parsed = _as_rows(tensor, shape)
    if parsed is None:
        return []
    rows, channels, boxes = parsed

    labels = tuple(labels)
    num_classes = channels - BOX_CHANNELS
    if num_classes <= 0 or num_classes != len(labels):
        logger.warning("Class count mismatch: tensor has %d, expected %d", num_classes, len(labels))
        return []

    if not _has_class_signal(rows):
        return []

    # Objectness gate runs first so softmax only sees surviving rows.
    objectness = sigmoid(rows[:, 4])
    obj_keep = np.flatnonzero(objectness >= confidence_threshold)
    rows = rows[obj_keep]
    objectness = objectness[obj_keep]

    probs = softmax(rows[:, BOX_CHANNELS:], axis=1)
    best = np.argmax(probs, axis=1)
    class_conf = probs[np.arange(probs.shape[0]), best]
    confidence = np.minimum(objectness * class_conf, 1.0)

    conf_keep = confidence >= confidence_threshold
    rows, best, confidence = rows[conf_keep], best[conf_keep], confidence[conf_keep]

    logger.debug(
        "%s",
        DecodeStats(
            boxes=boxes,
            channels=channels,
            passed_objectness=int(obj_keep.size),
            passed_confidence=int(confidence.size),
        ),
    )

    # Geometry is a normalized center/size, not anchor-relative.
    cx, cy, bw, bh = sigmoid(rows[:, :4]).T
    x = (cx - bw / 2) * image_width
    y = (cy - bh / 2) * image_height
    w = bw * image_width
    h = bh * image_height

    order = np.argsort(-confidence, kind="stable")
    return [
        Detection(
            label=labels[int(best[i])],
            confidence=float(confidence[i]),
            rect=Rect(x=float(x[i]), y=float(y[i]), width=float(w[i]), height=float(h[i])),
        )
        for i in order
    ]
