"""Trust-region Newton method for smooth unconstrained minimisation."""

from __future__ import annotations

import math
import sys
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, Tuple

from .blas import daxpy, ddot, dnrm2, dscal


class Function(ABC):
    """An objective that the trust-region solver can minimise.

    ``grad`` is always called right after ``fun`` at the same point, and
    ``hv`` after ``grad``, so implementations may cache between the calls.
    """

    @abstractmethod
    def fun(self, w: Sequence[float]) -> float:
        """Objective value at ``w``."""

    @abstractmethod
    def grad(self, w: Sequence[float]) -> List[float]:
        """Gradient at ``w``."""

    @abstractmethod
    def hv(self, s: Sequence[float]) -> List[float]:
        """Hessian, at the last gradient point, times ``s``."""

    @abstractmethod
    def nr_variable(self) -> int:
        """Number of variables."""


def _default_print(message: str) -> None:
    sys.stdout.write(message)
    sys.stdout.flush()


class Tron:
    """Trust-region Newton solver using conjugate gradient steps."""

    _ETA0, _ETA1, _ETA2 = 1e-4, 0.25, 0.75
    _SIGMA1, _SIGMA2, _SIGMA3 = 0.25, 0.5, 4.0

    def __init__(
        self,
        fun_obj: Function,
        eps: float = 0.1,
        max_iter: int = 1000,
        print_func: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.fun_obj = fun_obj
        self.eps = eps
        self.max_iter = max_iter
        self._print = print_func if print_func is not None else _default_print

    def minimize(self) -> List[float]:
        """Minimise the objective starting from zero and return the solution."""
        fun_obj = self.fun_obj
        n = fun_obj.nr_variable()
        w = [0.0] * n

        f = fun_obj.fun(w)
        g = fun_obj.grad(w)
        delta = dnrm2(g)
        gnorm1 = delta
        gnorm = gnorm1
        search = not gnorm <= self.eps * gnorm1

        iteration = 1
        while iteration <= self.max_iter and search:
            cg_iter, s, r = self._trcg(delta, g)
            w_new = daxpy(1.0, s, w)

            gs = ddot(g, s)
            prered = -0.5 * (gs - ddot(s, r))
            fnew = fun_obj.fun(w_new)
            actred = f - fnew

            snorm = dnrm2(s)
            if iteration == 1:
                delta = min(delta, snorm)

            if fnew - f - gs <= 0:
                alpha = self._SIGMA3
            else:
                alpha = max(self._SIGMA1, -0.5 * (gs / (fnew - f - gs)))

            if actred < self._ETA0 * prered:
                delta = min(max(alpha, self._SIGMA1) * snorm, self._SIGMA2 * delta)
            elif actred < self._ETA1 * prered:
                delta = max(self._SIGMA1 * delta, min(alpha * snorm, self._SIGMA2 * delta))
            elif actred < self._ETA2 * prered:
                delta = max(self._SIGMA1 * delta, min(alpha * snorm, self._SIGMA3 * delta))
            else:
                delta = max(delta, min(alpha * snorm, self._SIGMA3 * delta))

            self._print(
                "iter %2d act %5.3e pre %5.3e delta %5.3e f %5.3e |g| %5.3e CG %3d\n"
                % (iteration, actred, prered, delta, f, gnorm, cg_iter)
            )

            if actred > self._ETA0 * prered:
                iteration += 1
                w = w_new
                f = fnew
                g = fun_obj.grad(w)
                gnorm = dnrm2(g)
                if gnorm <= self.eps * gnorm1:
                    break
            if f < -1.0e32:
                self._print("WARNING: f < -1.0e+32\n")
                break
            if abs(actred) <= 0 and prered <= 0:
                self._print("WARNING: actred and prered <= 0\n")
                break
            if abs(actred) <= 1.0e-12 * abs(f) and abs(prered) <= 1.0e-12 * abs(f):
                self._print("WARNING: actred and prered too small\n")
                break

        return w

    def _trcg(
        self, delta: float, g: Sequence[float]
    ) -> Tuple[int, List[float], List[float]]:
        """Conjugate gradient inside the trust region; returns (iterations, step, residual)."""
        n = len(g)
        s = [0.0] * n
        r = [-gi for gi in g]
        d = list(r)
        cgtol = 0.1 * dnrm2(g)

        cg_iter = 0
        r_t_r = ddot(r, r)
        while dnrm2(r) > cgtol:
            cg_iter += 1
            hd = self.fun_obj.hv(d)

            alpha = r_t_r / ddot(d, hd)
            s = daxpy(alpha, d, s)
            if dnrm2(s) > delta:
                self._print("cg reaches trust region boundary\n")
                s = daxpy(-alpha, d, s)

                std = ddot(s, d)
                sts = ddot(s, s)
                dtd = ddot(d, d)
                dsq = delta * delta
                rad = math.sqrt(std * std + dtd * (dsq - sts))
                if std >= 0:
                    alpha = (dsq - sts) / (std + rad)
                else:
                    alpha = (rad - std) / dtd
                s = daxpy(alpha, d, s)
                r = daxpy(-alpha, hd, r)
                break
            r = daxpy(-alpha, hd, r)
            rnew_t_rnew = ddot(r, r)
            beta = rnew_t_rnew / r_t_r
            d = daxpy(1.0, r, dscal(beta, d))
            r_t_r = rnew_t_rnew

        return cg_iter, s, r