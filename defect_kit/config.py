from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

from .pipeline import DEFAULT_CONFIDENCE_THRESHOLD, DEFAULT_IOU_THRESHOLD, DetectionConfig


def _number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_detection_config(path: Path) -> DetectionConfig:
    """
    Read a DetectionConfig from a JSON object, e.g.

        {"confidence_threshold": 0.7, "iou_threshold": 0.45}

    Missing keys keep the reference defaults.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detection config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detection config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detection config must be a JSON object")

    allowed = {"confidence_threshold", "iou_threshold", "class_agnostic", "max_detections"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detection config keys: {unknown}")

    class_agnostic = payload.get("class_agnostic", True)
    if not isinstance(class_agnostic, bool):
        raise ValueError("class_agnostic must be a boolean")

    return DetectionConfig(
        confidence_threshold=_number(payload, "confidence_threshold", DEFAULT_CONFIDENCE_THRESHOLD),
        iou_threshold=_number(payload, "iou_threshold", DEFAULT_IOU_THRESHOLD),
        class_agnostic=class_agnostic,
        max_detections=_optional_int(payload, "max_detections"),
    )
