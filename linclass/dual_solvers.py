"""Coordinate descent solvers for L2-regularised dual problems."""

from __future__ import annotations

import math
import random
from typing import List, Optional

from .reporting import info
from .types import Parameter, Problem, SolverType

_INF = math.inf
_MAX_ITER = 1000


def _shuffle_prefix(index: List[int], size: int, rng: random.Random) -> None:
    """Randomly permute the first ``size`` entries of ``index`` in place."""
    for i in range(size):
        j = i + rng.randrange(size - i)
        index[i], index[j] = index[j], index[i]


def _signs(prob: Problem) -> List[int]:
    return [1 if yi > 0 else -1 for yi in prob.y]


def solve_l2r_l1l2_svc(
    prob: Problem,
    eps: float,
    Cp: float,
    Cn: float,
    solver_type: SolverType,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Dual coordinate descent for L1- or L2-loss SVC; returns ``w``.

    ``solver_type`` selects the L1 loss when it is ``L2R_L1LOSS_SVC_DUAL``,
    the L2 loss otherwise. Labels above zero count as positive.
    """
    rng = rng if rng is not None else random.Random()
    l, w_size = prob.l, prob.n

    if solver_type == SolverType.L2R_L1LOSS_SVC_DUAL:
        diag_neg, diag_pos = 0.0, 0.0
        ub_neg, ub_pos = Cn, Cp
    else:
        diag_neg, diag_pos = 0.5 / Cn, 0.5 / Cp
        ub_neg, ub_pos = _INF, _INF

    y = _signs(prob)
    diag = [diag_pos if yi > 0 else diag_neg for yi in y]
    upper = [ub_pos if yi > 0 else ub_neg for yi in y]

    alpha = [0.0] * l
    w = [0.0] * w_size
    QD = [diag[i] + sum(v * v for _, v in row) for i, row in enumerate(prob.x)]
    index = list(range(l))
    active_size = l

    pg_max_old = _INF
    pg_min_old = -_INF

    iteration = 0
    while iteration < _MAX_ITER:
        pg_max_new = -_INF
        pg_min_new = _INF
        _shuffle_prefix(index, active_size, rng)

        s = 0
        while s < active_size:
            i = index[s]
            yi = y[i]
            row = prob.x[i]
            G = sum(w[idx - 1] * val for idx, val in row) * yi - 1.0
            C = upper[i]
            G += alpha[i] * diag[i]

            PG = 0.0
            if alpha[i] == 0:
                if G > pg_max_old:
                    active_size -= 1
                    index[s], index[active_size] = index[active_size], index[s]
                    continue
                if G < 0:
                    PG = G
            elif alpha[i] == C:
                if G < pg_min_old:
                    active_size -= 1
                    index[s], index[active_size] = index[active_size], index[s]
                    continue
                if G > 0:
                    PG = G
            else:
                PG = G

            pg_max_new = max(pg_max_new, PG)
            pg_min_new = min(pg_min_new, PG)

            if abs(PG) > 1.0e-12:
                alpha_old = alpha[i]
                alpha[i] = min(max(alpha[i] - G / QD[i], 0.0), C)
                d = (alpha[i] - alpha_old) * yi
                for idx, val in row:
                    w[idx - 1] += d * val
            s += 1

        iteration += 1
        if iteration % 10 == 0:
            info(".")

        if pg_max_new - pg_min_new <= eps:
            if active_size == l:
                break
            active_size = l
            info("*")
            pg_max_old = _INF
            pg_min_old = -_INF
            continue
        pg_max_old = pg_max_new
        pg_min_old = pg_min_new
        if pg_max_old <= 0:
            pg_max_old = _INF
        if pg_min_old >= 0:
            pg_min_old = -_INF

    info("\noptimization finished, #iter = %d\n" % iteration)
    if iteration >= _MAX_ITER:
        info(
            "\nWARNING: reaching max number of iterations\n"
            "Using -s 2 may be faster (also see FAQ)\n\n"
        )

    v = sum(wi * wi for wi in w)
    nr_sv = 0
    for a, dg in zip(alpha, diag):
        v += a * (a * dg - 2.0)
        if a > 0:
            nr_sv += 1
    info("Objective value = %f\n" % (v / 2))
    info("nSV = %d\n" % nr_sv)
    return w


def solve_l2r_l1l2_svr(
    prob: Problem,
    param: Parameter,
    solver_type: SolverType,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Dual coordinate descent for L1- or L2-loss epsilon-SVR; returns ``w``.

    Cost, tube width and tolerance come from ``param``; ``solver_type``
    selects the L1 loss when it is ``L2R_L1LOSS_SVR_DUAL``.
    """
    rng = rng if rng is not None else random.Random()
    l, w_size = prob.l, prob.n
    C, p, eps = param.C, param.p, param.eps
    y = prob.y

    if solver_type == SolverType.L2R_L1LOSS_SVR_DUAL:
        lam, upper = 0.0, C
    else:
        lam, upper = 0.5 / C, _INF

    beta = [0.0] * l
    w = [0.0] * w_size
    QD = [sum(v * v for _, v in row) for row in prob.x]
    index = list(range(l))
    active_size = l

    g_max_old = _INF
    g_norm1_init = 0.0

    iteration = 0
    while iteration < _MAX_ITER:
        g_max_new = 0.0
        g_norm1_new = 0.0
        _shuffle_prefix(index, active_size, rng)

        s = 0
        while s < active_size:
            i = index[s]
            row = prob.x[i]
            G = -y[i] + lam * beta[i]
            H = QD[i] + lam
            G += sum(val * w[idx - 1] for idx, val in row)

            Gp = G + p
            Gn = G - p
            violation = 0.0
            shrink = False
            if beta[i] == 0:
                if Gp < 0:
                    violation = -Gp
                elif Gn > 0:
                    violation = Gn
                elif Gp > g_max_old and Gn < -g_max_old:
                    shrink = True
            elif beta[i] >= upper:
                if Gp > 0:
                    violation = Gp
                elif Gp < -g_max_old:
                    shrink = True
            elif beta[i] <= -upper:
                if Gn < 0:
                    violation = -Gn
                elif Gn > g_max_old:
                    shrink = True
            elif beta[i] > 0:
                violation = abs(Gp)
            else:
                violation = abs(Gn)

            if shrink:
                active_size -= 1
                index[s], index[active_size] = index[active_size], index[s]
                continue

            g_max_new = max(g_max_new, violation)
            g_norm1_new += violation

            if Gp < H * beta[i]:
                d = -Gp / H
            elif Gn > H * beta[i]:
                d = -Gn / H
            else:
                d = -beta[i]

            if abs(d) >= 1.0e-12:
                beta_old = beta[i]
                beta[i] = min(max(beta[i] + d, -upper), upper)
                d = beta[i] - beta_old
                if d != 0:
                    for idx, val in row:
                        w[idx - 1] += d * val
            s += 1

        if iteration == 0:
            g_norm1_init = g_norm1_new
        iteration += 1
        if iteration % 10 == 0:
            info(".")

        if g_norm1_new <= eps * g_norm1_init:
            if active_size == l:
                break
            active_size = l
            info("*")
            g_max_old = _INF
            continue

        g_max_old = g_max_new

    info("\noptimization finished, #iter = %d\n" % iteration)
    if iteration >= _MAX_ITER:
        info(
            "\nWARNING: reaching max number of iterations\n"
            "Using -s 11 may be faster\n\n"
        )

    v = 0.5 * sum(wi * wi for wi in w)
    nr_sv = 0
    for b, yi in zip(beta, y):
        v += p * abs(b) - yi * b + 0.5 * lam * b * b
        if b != 0:
            nr_sv += 1
    info("Objective value = %f\n" % v)
    info("nSV = %d\n" % nr_sv)
    return w


def solve_l2r_lr_dual(
    prob: Problem,
    eps: float,
    Cp: float,
    Cn: float,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Dual coordinate descent for L2-regularised logistic regression; returns ``w``."""
    rng = rng if rng is not None else random.Random()
    l, w_size = prob.l, prob.n
    max_inner_iter = 100
    innereps = 1e-2
    innereps_min = min(1e-8, eps)
    eta = 0.1

    y = _signs(prob)
    upper = [Cp if yi > 0 else Cn for yi in y]

    # each pair holds alpha_i and upper_i - alpha_i
    alpha = []
    for ub in upper:
        a0 = min(0.001 * ub, 1e-8)
        alpha.append([a0, ub - a0])

    w = [0.0] * w_size
    xTx = []
    for yi, pair, row in zip(y, alpha, prob.x):
        xTx.append(sum(v * v for _, v in row))
        for idx, val in row:
            w[idx - 1] += yi * pair[0] * val
    index = list(range(l))

    iteration = 0
    while iteration < _MAX_ITER:
        _shuffle_prefix(index, l, rng)
        newton_iter = 0
        g_max = 0.0
        for i in index:
            yi = y[i]
            C = upper[i]
            row = prob.x[i]
            pair = alpha[i]
            a = xTx[i]
            b = yi * sum(w[idx - 1] * val for idx, val in row)

            ind1, ind2, sign = 0, 1, 1
            if 0.5 * a * (pair[1] - pair[0]) + b < 0:
                ind1, ind2, sign = 1, 0, -1

            alpha_old = pair[ind1]
            z = alpha_old
            if C - z < 0.5 * C:
                z = 0.1 * z
            gp = a * (z - alpha_old) + sign * b + math.log(z / (C - z))
            g_max = max(g_max, abs(gp))

            inner_iter = 0
            while inner_iter <= max_inner_iter:
                if abs(gp) < innereps:
                    break
                gpp = a + C / (C - z) / z
                tmpz = z - gp / gpp
                if tmpz <= 0:
                    z *= eta
                else:
                    z = tmpz
                gp = a * (z - alpha_old) + sign * b + math.log(z / (C - z))
                newton_iter += 1
                inner_iter += 1

            if inner_iter > 0:
                pair[ind1] = z
                pair[ind2] = C - z
                step = sign * (z - alpha_old) * yi
                for idx, val in row:
                    w[idx - 1] += step * val

        iteration += 1
        if iteration % 10 == 0:
            info(".")

        if g_max < eps:
            break

        if newton_iter <= l // 10:
            innereps = max(innereps_min, 0.1 * innereps)

    info("\noptimization finished, #iter = %d\n" % iteration)
    if iteration >= _MAX_ITER:
        info(
            "\nWARNING: reaching max number of iterations\n"
            "Using -s 0 may be faster (also see FAQ)\n\n"
        )

    v = 0.5 * sum(wi * wi for wi in w)
    for (a0, a1), ub in zip(alpha, upper):
        v += a0 * math.log(a0) + a1 * math.log(a1) - ub * math.log(ub)
    info("Objective value = %f\n" % v)
    return w