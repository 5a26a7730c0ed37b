from typing import Union

import numpy as np


ArrayLike = Union[float, np.ndarray, list, tuple]


def sigmoid(x: ArrayLike):
    """
    Logistic function. Accepts scalars or arrays; returns the same kind.
    Very negative inputs saturate to 0 instead of emitting overflow warnings.
    """

    arr = np.asarray(x, dtype=np.float64)
    with np.errstate(over="ignore"):
        out = 1.0 / (1.0 + np.exp(-arr))
    if out.ndim == 0:
        return float(out)
    return out


def softmax(scores: ArrayLike, axis: int = -1) -> np.ndarray:
    """
    Numerically stable softmax along `axis`.

    The max is subtracted before exponentiating. If a slice sums to exactly
    zero (only reachable with non-finite input) that slice becomes uniform.
    """

    s = np.asarray(scores, dtype=np.float64)
    if s.size == 0:
        return s.copy()

    with np.errstate(over="ignore", invalid="ignore"):
        shifted = s - np.max(s, axis=axis, keepdims=True)
        exps = np.exp(shifted)
        total = np.sum(exps, axis=axis, keepdims=True)
        uniform = np.full_like(exps, 1.0 / s.shape[axis])
        safe_total = np.where(total == 0, 1.0, total)
        return np.where(total == 0, uniform, exps / safe_total)
