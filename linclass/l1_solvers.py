"""Coordinate descent solvers for L1-regularised classification.

Both solvers work on the problem in column form: ``prob_col.x[j]`` lists
the ``(instance index, value)`` pairs of feature ``j + 1``. ``transpose``
builds that form from the usual row form.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional

from .reporting import info
from .types import Instance, Problem

_INF = math.inf
_MAX_ITER = 1000
_MAX_NUM_LINESEARCH = 20


def transpose(prob: Problem) -> Problem:
    """Return the problem with features as rows and instances as columns.

    Each of the ``prob.n`` returned rows lists ``(instance_number, value)``
    pairs, with instance numbers starting at 1 and increasing.
    """
    columns: List[Instance] = [[] for _ in range(prob.n)]
    for i, row in enumerate(prob.x, start=1):
        for index, value in row:
            columns[index - 1].append((i, value))
    return Problem(n=prob.n, y=list(prob.y), x=columns, bias=prob.bias)


def _shuffle_prefix(index: List[int], size: int, rng: random.Random) -> None:
    for j in range(size):
        i = j + rng.randrange(size - j)
        index[i], index[j] = index[j], index[i]


def _check(prob_col: Problem) -> None:
    if prob_col.l == 0:
        raise ValueError("the problem has no instances")
    if len(prob_col.x) != prob_col.n:
        raise ValueError("column form needs one column per feature")


def solve_l1r_l2_svc(
    prob_col: Problem,
    eps: float,
    Cp: float,
    Cn: float,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Minimise sum |w_j| + sum C_i max(0, 1 - y_i w'x_i)^2; returns ``w``.

    ``prob_col`` is in column form (see ``transpose``) and is left unchanged.
    """
    _check(prob_col)
    rng = rng if rng is not None else random.Random()
    l, w_size = prob_col.l, prob_col.n
    sigma = 0.01

    y = [1 if yi > 0 else -1 for yi in prob_col.y]
    C = [Cp if yi > 0 else Cn for yi in y]
    # column entries hold y_i * x_ij
    cols = [[(ind, val * y[ind - 1]) for ind, val in col] for col in prob_col.x]

    w = [0.0] * w_size
    b = [1.0] * l  # b = 1 - y w'x
    xj_sq = [sum(C[ind - 1] * val * val for ind, val in col) for col in cols]
    index = list(range(w_size))
    active_size = w_size

    g_max_old = _INF
    g_norm1_init = 0.0
    loss_old = 0.0

    iteration = 0
    while iteration < _MAX_ITER:
        g_max_new = 0.0
        g_norm1_new = 0.0
        _shuffle_prefix(index, active_size, rng)

        s = 0
        while s < active_size:
            j = index[s]
            col = cols[j]
            G_loss = 0.0
            H = 0.0
            for ind, val in col:
                bi = b[ind - 1]
                if bi > 0:
                    tmp = C[ind - 1] * val
                    G_loss -= tmp * bi
                    H += tmp * val
            G_loss *= 2
            G = G_loss
            H = max(2 * H, 1e-12)

            Gp = G + 1
            Gn = G - 1
            violation = 0.0
            if w[j] == 0:
                if Gp < 0:
                    violation = -Gp
                elif Gn > 0:
                    violation = Gn
                elif Gp > g_max_old / l and Gn < -g_max_old / l:
                    active_size -= 1
                    index[s], index[active_size] = index[active_size], index[s]
                    continue
            elif w[j] > 0:
                violation = abs(Gp)
            else:
                violation = abs(Gn)

            g_max_new = max(g_max_new, violation)
            g_norm1_new += violation

            if Gp < H * w[j]:
                d = -Gp / H
            elif Gn > H * w[j]:
                d = -Gn / H
            else:
                d = -w[j]

            if abs(d) < 1.0e-12:
                s += 1
                continue

            delta = abs(w[j] + d) - abs(w[j]) + G * d
            d_old = 0.0
            num_linesearch = 0
            while num_linesearch < _MAX_NUM_LINESEARCH:
                d_diff = d_old - d
                cond = abs(w[j] + d) - abs(w[j]) - sigma * delta

                appxcond = xj_sq[j] * d * d + G_loss * d + cond
                if appxcond <= 0:
                    for ind, val in col:
                        b[ind - 1] += d_diff * val
                    break

                loss_new = 0.0
                first = num_linesearch == 0
                if first:
                    loss_old = 0.0
                for ind, val in col:
                    k = ind - 1
                    if first and b[k] > 0:
                        loss_old += C[k] * b[k] * b[k]
                    b_new = b[k] + d_diff * val
                    b[k] = b_new
                    if b_new > 0:
                        loss_new += C[k] * b_new * b_new

                cond += loss_new - loss_old
                if cond <= 0:
                    break
                d_old = d
                d *= 0.5
                delta *= 0.5
                num_linesearch += 1

            w[j] += d

            if num_linesearch >= _MAX_NUM_LINESEARCH:
                info("#")
                b = [1.0] * l
                for wi, c in zip(w, cols):
                    if wi == 0:
                        continue
                    for ind, val in c:
                        b[ind - 1] -= wi * val
            s += 1

        if iteration == 0:
            g_norm1_init = g_norm1_new
        iteration += 1
        if iteration % 10 == 0:
            info(".")

        if g_norm1_new <= eps * g_norm1_init:
            if active_size == w_size:
                break
            active_size = w_size
            info("*")
            g_max_old = _INF
            continue

        g_max_old = g_max_new

    info("\noptimization finished, #iter = %d\n" % iteration)
    if iteration >= _MAX_ITER:
        info("\nWARNING: reaching max number of iterations\n")

    v = 0.0
    nnz = 0
    for wj in w:
        if wj != 0:
            v += abs(wj)
            nnz += 1
    for ci, bi in zip(C, b):
        if bi > 0:
            v += ci * bi * bi
    info("Objective value = %f\n" % v)
    info("#nonzeros/#features = %d/%d\n" % (nnz, w_size))
    return w


def solve_l1r_lr(
    prob_col: Problem,
    eps: float,
    Cp: float,
    Cn: float,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Minimise sum |w_j| + sum C_i log(1 + exp(-y_i w'x_i)); returns ``w``.

    A Newton method whose quadratic sub-problems are solved by coordinate
    descent. ``prob_col`` is in column form (see ``transpose``).
    """
    _check(prob_col)
    rng = rng if rng is not None else random.Random()
    l, w_size = prob_col.l, prob_col.n
    cols = prob_col.x
    max_newton_iter = 100
    nu = 1e-12
    inner_eps = 1.0
    sigma = 0.01

    y = [1 if yi > 0 else -1 for yi in prob_col.y]
    C = [Cp if yi > 0 else Cn for yi in y]

    w = [0.0] * w_size
    wpd = list(w)
    index = list(range(w_size))
    w_norm = sum(abs(wj) for wj in w)
    wtx = [0.0] * l
    xjneg_sum = [0.0] * w_size
    for j, col in enumerate(cols):
        for ind, val in col:
            k = ind - 1
            wtx[k] += w[j] * val
            if y[k] == -1:
                xjneg_sum[j] += C[k] * val
    exp_wTx = [math.exp(t) for t in wtx]

    def refresh(exp_values: List[float]) -> tuple:
        tau_out, D_out = [], []
        for ci, e in zip(C, exp_values):
            tau_tmp = 1 / (1 + e)
            tau_out.append(ci * tau_tmp)
            D_out.append(ci * e * tau_tmp * tau_tmp)
        return tau_out, D_out

    tau, D = refresh(exp_wTx)
    Hdiag = [0.0] * w_size
    Grad = [0.0] * w_size

    g_max_old = _INF
    g_norm1_init = 0.0
    newton_iter = 0
    while newton_iter < max_newton_iter:
        g_max_new = 0.0
        g_norm1_new = 0.0
        active_size = w_size

        s = 0
        while s < active_size:
            j = index[s]
            h = nu
            tmp = 0.0
            for ind, val in cols[j]:
                h += val * val * D[ind - 1]
                tmp += val * tau[ind - 1]
            Hdiag[j] = h
            Grad[j] = -tmp + xjneg_sum[j]

            Gp = Grad[j] + 1
            Gn = Grad[j] - 1
            violation = 0.0
            if w[j] == 0:
                if Gp < 0:
                    violation = -Gp
                elif Gn > 0:
                    violation = Gn
                elif Gp > g_max_old / l and Gn < -g_max_old / l:
                    active_size -= 1
                    index[s], index[active_size] = index[active_size], index[s]
                    continue
            elif w[j] > 0:
                violation = abs(Gp)
            else:
                violation = abs(Gn)

            g_max_new = max(g_max_new, violation)
            g_norm1_new += violation
            s += 1

        if newton_iter == 0:
            g_norm1_init = g_norm1_new

        if g_norm1_new <= eps * g_norm1_init:
            break

        iteration = 0
        qp_g_max_old = _INF
        qp_active_size = active_size
        xTd = [0.0] * l

        while iteration < _MAX_ITER:
            qp_g_max_new = 0.0
            qp_g_norm1_new = 0.0
            _shuffle_prefix(index, qp_active_size, rng)

            s = 0
            while s < qp_active_size:
                j = index[s]
                H = Hdiag[j]
                G = Grad[j] + (wpd[j] - w[j]) * nu
                for ind, val in cols[j]:
                    G += val * D[ind - 1] * xTd[ind - 1]

                Gp = G + 1
                Gn = G - 1
                violation = 0.0
                if wpd[j] == 0:
                    if Gp < 0:
                        violation = -Gp
                    elif Gn > 0:
                        violation = Gn
                    elif Gp > qp_g_max_old / l and Gn < -qp_g_max_old / l:
                        qp_active_size -= 1
                        index[s], index[qp_active_size] = index[qp_active_size], index[s]
                        continue
                elif wpd[j] > 0:
                    violation = abs(Gp)
                else:
                    violation = abs(Gn)

                qp_g_max_new = max(qp_g_max_new, violation)
                qp_g_norm1_new += violation

                if Gp < H * wpd[j]:
                    z = -Gp / H
                elif Gn > H * wpd[j]:
                    z = -Gn / H
                else:
                    z = -wpd[j]

                if abs(z) >= 1.0e-12:
                    z = min(max(z, -10.0), 10.0)
                    wpd[j] += z
                    for ind, val in cols[j]:
                        xTd[ind - 1] += val * z
                s += 1

            iteration += 1

            if qp_g_norm1_new <= inner_eps * g_norm1_init:
                if qp_active_size == active_size:
                    break
                qp_active_size = active_size
                qp_g_max_old = _INF
                continue

            qp_g_max_old = qp_g_max_new

        if iteration >= _MAX_ITER:
            info("WARNING: reaching max number of inner iterations\n")

        delta = sum(gj * (pj - wj) for gj, pj, wj in zip(Grad, wpd, w))
        w_norm_new = sum(abs(pj) for pj in wpd if pj != 0)
        delta += w_norm_new - w_norm

        negsum_xTd = sum(ci * t for yi, ci, t in zip(y, C, xTd) if yi == -1)

        num_linesearch = 0
        while num_linesearch < _MAX_NUM_LINESEARCH:
            cond = w_norm_new - w_norm + negsum_xTd - sigma * delta
            exp_wTx_new = []
            for ci, e, t in zip(C, exp_wTx, xTd):
                exp_xTd = math.exp(t)
                e_new = e * exp_xTd
                exp_wTx_new.append(e_new)
                cond += ci * math.log((1 + e_new) / (exp_xTd + e_new))

            if cond <= 0:
                w_norm = w_norm_new
                w = list(wpd)
                exp_wTx = exp_wTx_new
                tau, D = refresh(exp_wTx)
                break

            wpd = [(wj + pj) * 0.5 for wj, pj in zip(w, wpd)]
            w_norm_new = sum(abs(pj) for pj in wpd if pj != 0)
            delta *= 0.5
            negsum_xTd *= 0.5
            xTd = [t * 0.5 for t in xTd]
            num_linesearch += 1

        if num_linesearch >= _MAX_NUM_LINESEARCH:
            wtx = [0.0] * l
            for wj, col in zip(w, cols):
                if wj == 0:
                    continue
                for ind, val in col:
                    wtx[ind - 1] += wj * val
            exp_wTx = [math.exp(t) for t in wtx]

        if iteration == 1:
            inner_eps *= 0.25

        newton_iter += 1
        g_max_old = g_max_new

        info("iter %3d  #CD cycles %d\n" % (newton_iter, iteration))

    info("=========================\n")
    info("optimization finished, #iter = %d\n" % newton_iter)
    if newton_iter >= max_newton_iter:
        info("WARNING: reaching max number of iterations\n")

    v = 0.0
    nnz = 0
    for wj in w:
        if wj != 0:
            v += abs(wj)
            nnz += 1
    for yi, ci, e in zip(y, C, exp_wTx):
        if yi == 1:
            v += ci * math.log(1 + 1 / e)
        else:
            v += ci * math.log(1 + e)
    info("Objective value = %f\n" % v)
    info("#nonzeros/#features = %d/%d\n" % (nnz, w_size))
    return w