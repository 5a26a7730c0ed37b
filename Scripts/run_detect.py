from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np

from defect_kit import DetectionConfig, detect, fallback_labels, load_detection_config, load_labels
from defect_kit.logging_utils import add_logging_args, configure_logging


logger = logging.getLogger("run_detect")


def _build_config(args: argparse.Namespace) -> DetectionConfig:
    base = load_detection_config(Path(args.config)) if args.config else DetectionConfig()
    return DetectionConfig(
        confidence_threshold=base.confidence_threshold if args.conf is None else float(args.conf),
        iou_threshold=base.iou_threshold if args.iou is None else float(args.iou),
        class_agnostic=base.class_agnostic and not bool(args.per_class_nms),
        max_detections=base.max_detections if args.max_det is None else int(args.max_det),
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Decode a saved raw model output (.npy) into defect detections.")
    parser.add_argument("--tensor", required=True, help="Path to a .npy file holding the [1, 5 + C, N] output.")
    parser.add_argument("--width", type=float, required=True, help="Original image width in pixels.")
    parser.add_argument("--height", type=float, required=True, help="Original image height in pixels.")
    parser.add_argument("--metadata", default=None, help="metadata.yaml with a `names:` mapping.")
    parser.add_argument("--config", default=None, help="JSON detection config.")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (overrides config).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (overrides config).")
    parser.add_argument("--max-det", type=int, default=None, help="Max detections to keep after NMS.")
    parser.add_argument("--per-class-nms", action="store_true", help="Use per-class NMS (default is cross-class).")
    add_logging_args(parser)
    args = parser.parse_args()

    configure_logging(args.log_level, args.verbose, args.quiet)

    if args.width <= 0 or args.height <= 0:
        raise ValueError("--width and --height must be > 0")

    tensor_path = Path(args.tensor)
    if not tensor_path.exists():
        raise FileNotFoundError(f"Tensor not found: {tensor_path}")
    tensor = np.load(tensor_path)
    logger.info("Loaded tensor %s with shape %s", tensor_path, tensor.shape)

    if args.metadata:
        labels = load_labels(args.metadata)
    else:
        labels = fallback_labels()
        logger.info("No metadata given, using %d generic labels", len(labels))

    cfg = _build_config(args)
    detections = detect(tensor, args.width, args.height, labels, cfg)

    if not detections:
        print("No objects detected")
        return 0

    top = detections[0]
    print(f"{top.label} ({min(top.confidence * 100, 100.0):.2f}%)")
    for det in detections:
        r = det.rect
        print(
            f"{det.label}: {int(min(det.confidence * 100, 100.0))}% "
            f"at x={r.x:.1f} y={r.y:.1f} w={r.width:.1f} h={r.height:.1f}"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
