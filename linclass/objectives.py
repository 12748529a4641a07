"""Smooth primal objectives minimised by the trust-region Newton solver."""

from __future__ import annotations

import math
from typing import List, Sequence

from .tron import Function
from .types import Instance, Problem


def _xv(rows: Sequence[Instance], v: Sequence[float]) -> List[float]:
    """Products of each sparse row with the dense vector ``v``."""
    return [sum(v[index - 1] * value for index, value in row) for row in rows]


def _xtv(rows: Sequence[Instance], v: Sequence[float], n: int) -> List[float]:
    """Transposed product: sum of ``v[i] * rows[i]`` as a dense vector of length ``n``."""
    out = [0.0] * n
    for coeff, row in zip(v, rows):
        for index, value in row:
            out[index - 1] += coeff * value
    return out


def _check_costs(prob: Problem, C: Sequence[float]) -> List[float]:
    costs = list(C)
    if len(costs) != prob.l:
        raise ValueError("one cost per instance is required")
    return costs


class L2RLogisticLoss(Function):
    """L2-regularised logistic regression: 0.5 w'w + sum C_i log(1 + exp(-y_i w'x_i))."""

    def __init__(self, prob: Problem, C: Sequence[float]) -> None:
        self.prob = prob
        self.C = _check_costs(prob, C)
        self._z: List[float] = [0.0] * prob.l
        self._D: List[float] = [0.0] * prob.l

    def nr_variable(self) -> int:
        return self.prob.n

    def fun(self, w: Sequence[float]) -> float:
        self._z = _xv(self.prob.x, w)
        f = 0.5 * sum(wi * wi for wi in w)
        for yi, zi, ci in zip(self.prob.y, self._z, self.C):
            yz = yi * zi
            if yz >= 0:
                f += ci * math.log1p(math.exp(-yz))
            else:
                f += ci * (-yz + math.log1p(math.exp(yz)))
        return f

    def grad(self, w: Sequence[float]) -> List[float]:
        coeffs = []
        for i, (yi, zi, ci) in enumerate(zip(self.prob.y, self._z, self.C)):
            sigma = 1.0 / (1.0 + math.exp(-yi * zi))
            self._D[i] = sigma * (1.0 - sigma)
            coeffs.append(ci * (sigma - 1.0) * yi)
        g = _xtv(self.prob.x, coeffs, self.prob.n)
        return [wi + gi for wi, gi in zip(w, g)]

    def hv(self, s: Sequence[float]) -> List[float]:
        wa = [
            ci * di * xi
            for ci, di, xi in zip(self.C, self._D, _xv(self.prob.x, s))
        ]
        hs = _xtv(self.prob.x, wa, self.prob.n)
        return [si + hi for si, hi in zip(s, hs)]


class L2RL2SvcLoss(Function):
    """L2-regularised squared hinge loss: 0.5 w'w + sum C_i max(0, 1 - y_i w'x_i)^2."""

    def __init__(self, prob: Problem, C: Sequence[float]) -> None:
        self.prob = prob
        self.C = _check_costs(prob, C)
        self._z: List[float] = [0.0] * prob.l
        self._active: List[int] = []

    def nr_variable(self) -> int:
        return self.prob.n

    def fun(self, w: Sequence[float]) -> float:
        self._z = [
            yi * zi for yi, zi in zip(self.prob.y, _xv(self.prob.x, w))
        ]
        f = 0.5 * sum(wi * wi for wi in w)
        for zi, ci in zip(self._z, self.C):
            d = 1.0 - zi
            if d > 0:
                f += ci * d * d
        return f

    def grad(self, w: Sequence[float]) -> List[float]:
        self._active = [i for i, zi in enumerate(self._z) if zi < 1]
        coeffs = [
            self.C[i] * self.prob.y[i] * (self._z[i] - 1.0) for i in self._active
        ]
        return self._combine(w, coeffs)

    def _combine(self, w: Sequence[float], coeffs: Sequence[float]) -> List[float]:
        rows = [self.prob.x[i] for i in self._active]
        g = _xtv(rows, coeffs, self.prob.n)
        return [wi + 2.0 * gi for wi, gi in zip(w, g)]

    def hv(self, s: Sequence[float]) -> List[float]:
        rows = [self.prob.x[i] for i in self._active]
        wa = [self.C[i] * v for i, v in zip(self._active, _xv(rows, s))]
        hs = _xtv(rows, wa, self.prob.n)
        return [si + 2.0 * hi for si, hi in zip(s, hs)]


class L2RL2SvrLoss(L2RL2SvcLoss):
    """L2-regularised squared epsilon-insensitive loss for support vector regression."""

    def __init__(self, prob: Problem, C: Sequence[float], p: float) -> None:
        super().__init__(prob, C)
        self.p = p

    def fun(self, w: Sequence[float]) -> float:
        self._z = _xv(self.prob.x, w)
        p = self.p
        f = 0.5 * sum(wi * wi for wi in w)
        for zi, yi, ci in zip(self._z, self.prob.y, self.C):
            d = zi - yi
            if d < -p:
                f += ci * (d + p) * (d + p)
            elif d > p:
                f += ci * (d - p) * (d - p)
        return f

    def grad(self, w: Sequence[float]) -> List[float]:
        p = self.p
        self._active = []
        coeffs = []
        for i, (zi, yi, ci) in enumerate(zip(self._z, self.prob.y, self.C)):
            d = zi - yi
            if d < -p:
                self._active.append(i)
                coeffs.append(ci * (d + p))
            elif d > p:
                self._active.append(i)
                coeffs.append(ci * (d - p))
        return self._combine(w, coeffs)