"""Coordinate descent for the Crammer and Singer multi-class SVM dual."""

from __future__ import annotations

import math
import random
from typing import List, Optional, Sequence

from .reporting import info
from .types import Problem

_INF = math.inf


class CrammerSingerSolver:
    """Solve the multi-class SVM dual of Crammer and Singer.

    ``prob.y`` must hold class indices ``0 .. nr_class - 1`` and ``C`` one
    cost per class. The solution ``w`` is laid out feature by feature, with
    ``nr_class`` entries per feature.
    """

    def __init__(
        self,
        prob: Problem,
        nr_class: int,
        C: Sequence[float],
        eps: float = 0.1,
        max_iter: int = 100000,
        rng: Optional[random.Random] = None,
    ) -> None:
        if len(C) < nr_class:
            raise ValueError("one cost per class is required")
        self.prob = prob
        self.nr_class = nr_class
        self.C = list(C)
        self.eps = eps
        self.max_iter = max_iter
        self.rng = rng if rng is not None else random.Random()
        self.alpha: List[List[float]] = []
        self.iterations = 0
        self.objective = 0.0
        self.nr_sv = 0

    @staticmethod
    def _solve_sub_problem(
        A_i: float, yi: int, C_yi: float, active_i: int, B: Sequence[float]
    ) -> List[float]:
        D = sorted(B[:active_i], reverse=True) if yi >= active_i else None
        if D is None:
            shifted = list(B[:active_i])
            shifted[yi] += A_i * C_yi
            D = sorted(shifted, reverse=True)
        beta = D[0] - A_i * C_yi
        r = 1
        while r < active_i and beta < r * D[r]:
            beta += D[r]
            r += 1
        beta /= r
        return [
            min(C_yi, (beta - B[m]) / A_i) if m == yi else min(0.0, (beta - B[m]) / A_i)
            for m in range(active_i)
        ]

    def solve(self) -> List[float]:
        """Run the solver and return the weight vector."""
        prob = self.prob
        k = self.nr_class
        l = prob.l
        C = self.C
        eps = self.eps
        rng = self.rng
        labels = [int(y) for y in prob.y]

        w = [0.0] * (prob.n * k)
        alpha = [[0.0] * k for _ in range(l)]
        alpha_index = [list(range(k)) for _ in range(l)]
        QD = [sum(v * v for _, v in row) for row in prob.x]
        active_size_i = [k] * l
        y_index = list(labels)
        index = list(range(l))
        active_size = l
        eps_shrink = max(10.0 * eps, 1.0)
        start_from_all = True
        G = [0.0] * k
        B = [0.0] * k

        def be_shrunk(i: int, m: int, yi: int, alpha_val: float, min_g: float) -> bool:
            bound = C[labels[i]] if m == yi else 0.0
            return alpha_val == bound and G[m] < min_g

        iteration = 0
        while iteration < self.max_iter:
            stopping = -_INF
            for i in range(active_size):
                j = i + rng.randrange(active_size - i)
                index[i], index[j] = index[j], index[i]

            s = 0
            while s < active_size:
                i = index[s]
                Ai = QD[i]
                alpha_i = alpha[i]
                ai_idx = alpha_index[i]
                row = prob.x[i]

                if Ai > 0:
                    asz = active_size_i[i]
                    for m in range(asz):
                        G[m] = 1.0
                    if y_index[i] < asz:
                        G[y_index[i]] = 0.0
                    for feat, val in row:
                        base = (feat - 1) * k
                        for m in range(asz):
                            G[m] += w[base + ai_idx[m]] * val

                    min_g = _INF
                    max_g = -_INF
                    for m in range(asz):
                        if alpha_i[ai_idx[m]] < 0 and G[m] < min_g:
                            min_g = G[m]
                        if G[m] > max_g:
                            max_g = G[m]
                    if y_index[i] < asz:
                        if alpha_i[labels[i]] < C[labels[i]] and G[y_index[i]] < min_g:
                            min_g = G[y_index[i]]

                    m = 0
                    while m < active_size_i[i]:
                        if be_shrunk(i, m, y_index[i], alpha_i[ai_idx[m]], min_g):
                            active_size_i[i] -= 1
                            while active_size_i[i] > m:
                                last = active_size_i[i]
                                if not be_shrunk(i, last, y_index[i], alpha_i[ai_idx[last]], min_g):
                                    ai_idx[m], ai_idx[last] = ai_idx[last], ai_idx[m]
                                    G[m], G[last] = G[last], G[m]
                                    if y_index[i] == last:
                                        y_index[i] = m
                                    elif y_index[i] == m:
                                        y_index[i] = last
                                    break
                                active_size_i[i] -= 1
                        m += 1

                    if active_size_i[i] <= 1:
                        active_size -= 1
                        index[s], index[active_size] = index[active_size], index[s]
                        continue

                    if max_g - min_g <= 1e-12:
                        s += 1
                        continue
                    stopping = max(max_g - min_g, stopping)

                    asz = active_size_i[i]
                    for m in range(asz):
                        B[m] = G[m] - Ai * alpha_i[ai_idx[m]]

                    alpha_new = self._solve_sub_problem(
                        Ai, y_index[i], C[labels[i]], asz, B
                    )
                    changes = []
                    for m in range(asz):
                        d = alpha_new[m] - alpha_i[ai_idx[m]]
                        alpha_i[ai_idx[m]] = alpha_new[m]
                        if abs(d) >= 1e-12:
                            changes.append((ai_idx[m], d))

                    for feat, val in row:
                        base = (feat - 1) * k
                        for cls, d in changes:
                            w[base + cls] += d * val
                s += 1

            iteration += 1
            if iteration % 10 == 0:
                info(".")

            if stopping < eps_shrink:
                if stopping < eps and start_from_all:
                    break
                active_size = l
                active_size_i = [k] * l
                info("*")
                eps_shrink = max(eps_shrink / 2, eps)
                start_from_all = True
            else:
                start_from_all = False

        info("\noptimization finished, #iter = %d\n" % iteration)
        if iteration >= self.max_iter:
            info("\nWARNING: reaching max number of iterations\n")

        v = 0.5 * sum(wi * wi for wi in w)
        nr_sv = 0
        for a_row in alpha:
            for a in a_row:
                v += a
                if abs(a) > 0:
                    nr_sv += 1
        for i in range(l):
            v -= alpha[i][labels[i]]
        info("Objective value = %f\n" % v)
        info("nSV = %d\n" % nr_sv)

        self.alpha = alpha
        self.iterations = iteration
        self.objective = v
        self.nr_sv = nr_sv
        return w