"""The few dense vector operations the trust-region solver needs."""

from __future__ import annotations

import math
from typing import List, Sequence


def daxpy(a: float, x: Sequence[float], y: Sequence[float]) -> List[float]:
    """Return ``a * x + y``."""
    if len(x) != len(y):
        raise ValueError("vectors differ in length")
    if a == 0.0:
        return list(y)
    return [yi + a * xi for xi, yi in zip(x, y)]


def ddot(x: Sequence[float], y: Sequence[float]) -> float:
    """Return the dot product of ``x`` and ``y``."""
    if len(x) != len(y):
        raise ValueError("vectors differ in length")
    return sum(xi * yi for xi, yi in zip(x, y))


def dnrm2(x: Sequence[float]) -> float:
    """Return the Euclidean norm of ``x``, scaled to avoid overflow."""
    if not x:
        return 0.0
    if len(x) == 1:
        return abs(x[0])
    scale = 0.0
    ssq = 1.0
    for value in reversed(x):
        if value != 0.0:
            absxi = abs(value)
            if scale < absxi:
                temp = scale / absxi
                ssq = ssq * (temp * temp) + 1.0
                scale = absxi
            else:
                temp = absxi / scale
                ssq += temp * temp
    return scale * math.sqrt(ssq)


def dscal(a: float, x: Sequence[float]) -> List[float]:
    """Return ``a * x``."""
    return [a * xi for xi in x]