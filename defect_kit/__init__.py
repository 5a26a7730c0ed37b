"""
Post-processing for single-scale YOLO-style defect detectors.

Turns the raw [1, 5 + C, N] output of an external inference engine into
labeled detections: sigmoid/softmax decode, confidence filter, greedy NMS.
Only NumPy is required; model execution stays with the caller.
"""

from .types import Detection, Rect
from .activations import sigmoid, softmax
from .decode import decode
from .geometry import box_iou, iou
from .nms import NMSConfig, nms, suppress
from .pipeline import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    DEFAULT_IOU_THRESHOLD,
    DetectionConfig,
    DetectionPipeline,
    detect,
)
from .config import load_detection_config
from .metadata import fallback_labels, load_labels

__all__ = [
    "Detection",
    "Rect",
    "sigmoid",
    "softmax",
    "decode",
    "box_iou",
    "iou",
    "NMSConfig",
    "nms",
    "suppress",
    "DEFAULT_CONFIDENCE_THRESHOLD",
    "DEFAULT_IOU_THRESHOLD",
    "DetectionConfig",
    "DetectionPipeline",
    "detect",
    "load_detection_config",
    "fallback_labels",
    "load_labels",
]
