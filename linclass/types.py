"""Core data types: solver kinds, training problems, parameters and models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple

Instance = List[Tuple[int, float]]
"""A sparse instance: (index, value) pairs, indices starting at 1 and increasing."""


class SolverType(IntEnum):
    """The available training algorithms, numbered as in the model file format."""

    L2R_LR = 0
    L2R_L2LOSS_SVC_DUAL = 1
    L2R_L2LOSS_SVC = 2
    L2R_L1LOSS_SVC_DUAL = 3
    MCSVM_CS = 4
    L1R_L2LOSS_SVC = 5
    L1R_LR = 6
    L2R_LR_DUAL = 7
    L2R_L2LOSS_SVR = 11
    L2R_L2LOSS_SVR_DUAL = 12
    L2R_L1LOSS_SVR_DUAL = 13

    @property
    def is_regression(self) -> bool:
        """True for the support vector regression solvers."""
        return self in (
            SolverType.L2R_L2LOSS_SVR,
            SolverType.L2R_L2LOSS_SVR_DUAL,
            SolverType.L2R_L1LOSS_SVR_DUAL,
        )


@dataclass
class Problem:
    """A training set: ``n`` features, targets ``y`` and sparse instances ``x``.

    A negative ``bias`` means no bias term is appended to the instances.
    """

    n: int
    y: List[float]
    x: List[Instance]
    bias: float = -1.0

    @property
    def l(self) -> int:  # noqa: E743
        """Number of instances."""
        return len(self.y)


@dataclass
class Parameter:
    """Training parameters."""

    solver_type: SolverType = SolverType.L2R_L2LOSS_SVC_DUAL
    eps: float = 0.1
    C: float = 1.0
    weight_label: List[int] = field(default_factory=list)
    weight: List[float] = field(default_factory=list)
    p: float = 0.1


@dataclass
class Model:
    """A trained linear model.

    ``w`` is stored row by row: feature ``i`` owns entries
    ``w[i * nr_w : (i + 1) * nr_w]``.
    """

    param: Parameter
    nr_class: int
    nr_feature: int
    w: List[float]
    label: Optional[List[int]] = None
    bias: float = -1.0

    @property
    def nr_w(self) -> int:
        """Number of weight vectors kept per feature."""
        if self.nr_class == 2 and self.param.solver_type != SolverType.MCSVM_CS:
            return 1
        return self.nr_class

    @property
    def weight_size(self) -> int:
        """Number of features including the bias feature, if any."""
        if self.bias >= 0:
            return self.nr_feature + 1
        return self.nr_feature