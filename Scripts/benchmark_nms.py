from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from defect_kit import DetectionConfig, decode, detect, fallback_labels
from defect_kit.logging_utils import add_logging_args, configure_logging


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _percentile(sorted_values: List[float], q: float) -> float:
    if not sorted_values:
        raise ValueError("No values provided.")
    if q < 0.0 or q > 100.0:
        raise ValueError("q must be in [0, 100].")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    if lo == hi:
        return float(sorted_values[lo])
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms_sorted = sorted(v * 1000.0 for v in values_s)
    return TimingSummary(
        n=len(ms_sorted),
        mean_ms=float(statistics.fmean(ms_sorted)) if ms_sorted else 0.0,
        p50_ms=_percentile(ms_sorted, 50.0) if ms_sorted else 0.0,
        p90_ms=_percentile(ms_sorted, 90.0) if ms_sorted else 0.0,
        p95_ms=_percentile(ms_sorted, 95.0) if ms_sorted else 0.0,
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def synthetic_tensor(boxes: int, classes: int, seed: int = 0) -> np.ndarray:
    """Random raw logits shaped [1, 5 + classes, boxes]."""
    rng = np.random.default_rng(seed)
    return rng.normal(0.0, 2.0, size=(1, 5 + classes, boxes)).astype(np.float32)


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark decode latency with NMS vs decode only.")
    parser.add_argument("--boxes", type=int, default=8400, help="Number of candidate boxes in the synthetic tensor.")
    parser.add_argument("--classes", type=int, default=7, help="Number of classes in the synthetic tensor.")
    parser.add_argument("--conf", type=float, default=0.7, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--per-class-nms", action="store_true", help="Use per-class NMS (default is cross-class).")
    parser.add_argument("--size", type=int, default=640, help="Image width/height in pixels.")
    parser.add_argument("--warmup", type=int, default=10, help="Iterations to run but not record.")
    parser.add_argument("--iters", type=int, default=200, help="Recorded iterations.")
    add_logging_args(parser)
    args = parser.parse_args()

    configure_logging(args.log_level, args.verbose, args.quiet)

    if args.boxes < 1:
        raise ValueError("--boxes must be >= 1")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.iters < 1:
        raise ValueError("--iters must be >= 1")

    tensor = synthetic_tensor(int(args.boxes), int(args.classes))
    labels = fallback_labels(int(args.classes))
    cfg = DetectionConfig(
        confidence_threshold=float(args.conf),
        iou_threshold=float(args.iou),
        class_agnostic=not bool(args.per_class_nms),
    )
    size = float(args.size)

    t_full: List[float] = []
    t_decode: List[float] = []
    kept = candidates = 0
    for i in range(int(args.warmup) + int(args.iters)):
        t0 = time.perf_counter()
        final = detect(tensor, size, size, labels, cfg)
        t1 = time.perf_counter()
        raw = decode(tensor, size, size, labels, cfg.confidence_threshold)
        t2 = time.perf_counter()

        if i < int(args.warmup):
            continue
        t_full.append(t1 - t0)
        t_decode.append(t2 - t1)
        kept, candidates = len(final), len(raw)

    print(_format_summary("decode_with_nms", _summarize_ms(t_full)))
    print(_format_summary("decode_only", _summarize_ms(t_decode)))
    print(f"boxes={args.boxes} classes={args.classes} candidates={candidates} kept={kept}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
