from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .decode import decode
from .nms import suppress
from .types import Detection


logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_IOU_THRESHOLD = 0.45


@dataclass(frozen=True)
class DetectionConfig:
    """
    Thresholds for one detection call.
    """

    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    iou_threshold: float = DEFAULT_IOU_THRESHOLD
    # False runs NMS separately per label.
    class_agnostic: bool = True
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1")


def detect(
    tensor,
    image_width: float,
    image_height: float,
    labels: Sequence[str],
    config: DetectionConfig = DetectionConfig(),
    *,
    shape: Optional[Sequence[int]] = None,
) -> List[Detection]:
    """
    Raw model output -> final detections (decode, threshold, NMS).
    """

    candidates = decode(
        tensor,
        image_width,
        image_height,
        labels,
        config.confidence_threshold,
        shape=shape,
    )
    if not candidates:
        return []
    return suppress(
        candidates,
        config.iou_threshold,
        class_agnostic=config.class_agnostic,
        max_detections=config.max_detections,
    )


class DetectionPipeline:
    """
    Binds an external inference callable to `detect`.

    `infer_fn` receives whatever the caller passes as `inputs` (an already
    preprocessed blob, typically) and must return the raw [1, C, N] tensor.
    `submit` runs the same work on an executor and returns a Future.
    """

    def __init__(
        self,
        infer_fn: Callable[[Any], Any],
        labels: Sequence[str],
        config: DetectionConfig = DetectionConfig(),
        *,
        executor: Optional[Executor] = None,
    ):
        self._infer_fn = infer_fn
        self.labels: Tuple[str, ...] = tuple(labels)
        self.config = config
        self._executor = executor
        self._owns_executor = executor is None
        self._lock = threading.Lock()
        self._closed = False

    def __call__(self, inputs: Any, image_size: Tuple[float, float]) -> List[Detection]:
        width, height = image_size
        raw = self._infer_fn(inputs)
        return detect(raw, width, height, self.labels, self.config)

    def submit(self, inputs: Any, image_size: Tuple[float, float]) -> "Future[List[Detection]]":
        with self._lock:
            if self._closed:
                raise RuntimeError("cannot submit to a closed DetectionPipeline")
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="defect-detect")
            return self._executor.submit(self, inputs, image_size)

    def close(self) -> None:
        with self._lock:
            self._closed = True
            executor, self._executor = self._executor, None
        if self._owns_executor and executor is not None:
            executor.shutdown(wait=True)

    def __enter__(self) -> "DetectionPipeline":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
