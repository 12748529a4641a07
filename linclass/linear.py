"""Training, prediction, cross validation and model files for linear classifiers."""

from __future__ import annotations

import dataclasses
import math
import random
import sys
from dataclasses import dataclass
from itertools import accumulate
from typing import List, Optional, Sequence, Tuple

from .dual_solvers import solve_l2r_l1l2_svc, solve_l2r_l1l2_svr, solve_l2r_lr_dual
from .l1_solvers import solve_l1r_l2_svc, solve_l1r_lr, transpose
from .mcsvm import CrammerSingerSolver
from .objectives import L2RL2SvcLoss, L2RL2SvrLoss, L2RLogisticLoss
from .reporting import info
from .tron import Tron
from .types import Instance, Model, Parameter, Problem, SolverType


class ParameterError(ValueError):
    """Raised when training parameters are invalid or unusable."""


class ModelFormatError(ValueError):
    """Raised when a model file cannot be understood."""


@dataclass
class ClassGrouping:
    """Classes found in a training set.

    ``labels`` are in order of first appearance, ``start[k]`` and ``count[k]``
    give the slice of ``perm`` holding the instances of class ``k``, and
    ``perm`` maps those positions back to instance indices.
    """

    labels: List[int]
    start: List[int]
    count: List[int]
    perm: List[int]

    @property
    def nr_class(self) -> int:
        return len(self.labels)


def group_classes(prob: Problem) -> ClassGrouping:
    """Group the instances of ``prob`` by their (integer) label."""
    labels: List[int] = []
    counts: List[int] = []
    position = {}
    data_label: List[int] = []
    for y in prob.y:
        label = int(y)
        k = position.get(label)
        if k is None:
            k = len(labels)
            position[label] = k
            labels.append(label)
            counts.append(0)
        counts[k] += 1
        data_label.append(k)

    start = list(accumulate([0] + counts[:-1])) if counts else []
    buckets: List[List[int]] = [[] for _ in labels]
    for i, k in enumerate(data_label):
        buckets[k].append(i)
    perm = [i for bucket in buckets for i in bucket]
    return ClassGrouping(labels=labels, start=start, count=counts, perm=perm)


def _solver(param: Parameter) -> SolverType:
    try:
        return SolverType(param.solver_type)
    except ValueError:
        raise ParameterError("unknown solver type") from None


def train_one(
    prob: Problem,
    param: Parameter,
    Cp: float,
    Cn: float,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Train one weight vector; labels above zero count as positive."""
    rng = rng if rng is not None else random.Random()
    solver = _solver(param)
    eps = param.eps
    l = prob.l
    pos = sum(1 for y in prob.y if y > 0)
    neg = l - pos
    primal_solver_tol = eps * max(min(pos, neg), 1) / l

    def class_costs() -> List[float]:
        return [Cp if y > 0 else Cn for y in prob.y]

    if solver == SolverType.L2R_LR:
        fun_obj = L2RLogisticLoss(prob, class_costs())
        return Tron(fun_obj, primal_solver_tol, print_func=info).minimize()
    if solver == SolverType.L2R_L2LOSS_SVC:
        fun_obj = L2RL2SvcLoss(prob, class_costs())
        return Tron(fun_obj, primal_solver_tol, print_func=info).minimize()
    if solver in (SolverType.L2R_L2LOSS_SVC_DUAL, SolverType.L2R_L1LOSS_SVC_DUAL):
        return solve_l2r_l1l2_svc(prob, eps, Cp, Cn, solver, rng)
    if solver == SolverType.L1R_L2LOSS_SVC:
        return solve_l1r_l2_svc(transpose(prob), primal_solver_tol, Cp, Cn, rng)
    if solver == SolverType.L1R_LR:
        return solve_l1r_lr(transpose(prob), primal_solver_tol, Cp, Cn, rng)
    if solver == SolverType.L2R_LR_DUAL:
        return solve_l2r_lr_dual(prob, eps, Cp, Cn, rng)
    if solver == SolverType.L2R_L2LOSS_SVR:
        fun_obj = L2RL2SvrLoss(prob, [param.C] * l, param.p)
        return Tron(fun_obj, param.eps, print_func=info).minimize()
    if solver in (SolverType.L2R_L1LOSS_SVR_DUAL, SolverType.L2R_L2LOSS_SVR_DUAL):
        return solve_l2r_l1l2_svr(prob, param, solver, rng)
    raise ParameterError("unknown solver type")


def train(
    prob: Problem, param: Parameter, rng: Optional[random.Random] = None
) -> Model:
    """Train a model on ``prob`` with ``param``."""
    if prob.l == 0:
        raise ValueError("the problem has no instances")
    rng = rng if rng is not None else random.Random()
    solver = _solver(param)
    n = prob.n
    nr_feature = n - 1 if prob.bias >= 0 else n
    model_param = dataclasses.replace(
        param, weight_label=list(param.weight_label), weight=list(param.weight)
    )

    if solver.is_regression:
        w = train_one(prob, param, 0.0, 0.0, rng)
        return Model(
            param=model_param, nr_class=2, nr_feature=nr_feature,
            w=w, label=None, bias=prob.bias,
        )

    grouping = group_classes(prob)
    nr_class = grouping.nr_class
    labels = grouping.labels

    weighted_C = [param.C] * nr_class
    for wl, wv in zip(param.weight_label, param.weight):
        if wl in labels:
            weighted_C[labels.index(wl)] *= wv
        else:
            sys.stderr.write(
                "WARNING: class label %d specified in weight is not found\n" % wl
            )

    sub_x: List[Instance] = [prob.x[i] for i in grouping.perm]

    def sub_problem(y: List[float]) -> Problem:
        return Problem(n=n, y=y, x=sub_x, bias=prob.bias)

    if solver == SolverType.MCSVM_CS:
        y = [float(k) for k, c in enumerate(grouping.count) for _ in range(c)]
        w = CrammerSingerSolver(
            sub_problem(y), nr_class, weighted_C, param.eps, rng=rng
        ).solve()
    elif nr_class == 2:
        e0 = grouping.start[0] + grouping.count[0]
        y = [1.0] * e0 + [-1.0] * (prob.l - e0)
        w = train_one(sub_problem(y), param, weighted_C[0], weighted_C[1], rng)
    else:
        w = [0.0] * (n * nr_class)
        for k in range(nr_class):
            si = grouping.start[k]
            ei = si + grouping.count[k]
            y = [1.0 if si <= pos < ei else -1.0 for pos in range(prob.l)]
            wk = train_one(sub_problem(y), param, weighted_C[k], param.C, rng)
            for j, value in enumerate(wk):
                w[j * nr_class + k] = value

    return Model(
        param=model_param, nr_class=nr_class, nr_feature=nr_feature,
        w=w, label=list(labels), bias=prob.bias,
    )


def cross_validation(
    prob: Problem,
    param: Parameter,
    nr_fold: int,
    rng: Optional[random.Random] = None,
) -> List[float]:
    """Predict every instance with a model trained on the other folds."""
    if nr_fold < 1:
        raise ValueError("the number of folds must be positive")
    rng = rng if rng is not None else random.Random()
    l = prob.l
    perm = list(range(l))
    for i in range(l):
        j = i + rng.randrange(l - i)
        perm[i], perm[j] = perm[j], perm[i]
    fold_start = [i * l // nr_fold for i in range(nr_fold + 1)]

    target = [0.0] * l
    for begin, end in zip(fold_start, fold_start[1:]):
        kept = perm[:begin] + perm[end:]
        subprob = Problem(
            n=prob.n,
            y=[prob.y[i] for i in kept],
            x=[prob.x[i] for i in kept],
            bias=prob.bias,
        )
        submodel = train(subprob, param, rng)
        for i in perm[begin:end]:
            target[i] = predict(submodel, prob.x[i])
    return target


def predict_values(model: Model, x: Instance) -> Tuple[float, List[float]]:
    """Return the predicted label (or value) and the decision values."""
    n = model.weight_size
    nr_w = model.nr_w
    w = model.w
    dec_values = [0.0] * nr_w
    for idx, value in x:
        # the dimension of test data may exceed that of training
        if idx <= n:
            base = (idx - 1) * nr_w
            for k in range(nr_w):
                dec_values[k] += w[base + k] * value

    if model.nr_class == 2:
        if SolverType(model.param.solver_type).is_regression:
            return dec_values[0], dec_values
        if model.label is None:
            raise ModelFormatError("classification model without labels")
        chosen = model.label[0] if dec_values[0] > 0 else model.label[1]
        return float(chosen), dec_values

    if model.label is None:
        raise ModelFormatError("classification model without labels")
    best = max(range(model.nr_class), key=lambda k: (dec_values[k], -k))
    return float(model.label[best]), dec_values


def predict(model: Model, x: Instance) -> float:
    """Return the predicted label, or the predicted value for regression."""
    return predict_values(model, x)[0]


def predict_probability(model: Model, x: Instance) -> Tuple[float, List[float]]:
    """Return the predicted label and one probability estimate per class."""
    if not check_probability_model(model):
        raise ParameterError(
            "probability estimates are only available for logistic regression models"
        )
    nr_class = model.nr_class
    label, dec_values = predict_values(model, x)
    probs = [1.0 / (1.0 + math.exp(-v)) for v in dec_values]
    if nr_class == 2:
        return label, [probs[0], 1.0 - probs[0]]
    total = sum(probs)
    return label, [p / total for p in probs]


def save_model(path: str, model: Model) -> None:
    """Write ``model`` to ``path`` in the text model format."""
    nr_w = model.nr_w
    lines = [
        "solver_type %s\n" % SolverType(model.param.solver_type).name,
        "nr_class %d\n" % model.nr_class,
    ]
    if model.label is not None:
        lines.append("label" + "".join(" %d" % lab for lab in model.label) + "\n")
    lines.append("nr_feature %d\n" % model.nr_feature)
    lines.append("bias %.16g\n" % model.bias)
    lines.append("w\n")
    for i in range(model.weight_size):
        row = model.w[i * nr_w:(i + 1) * nr_w]
        lines.append("".join("%.16g " % v for v in row) + "\n")
    with open(path, "w", encoding="ascii") as fh:
        fh.writelines(lines)


def _parse(kind, token: str, what: str):
    try:
        return kind(token)
    except ValueError:
        raise ModelFormatError("bad %s in model file: [%s]" % (what, token)) from None


def load_model(path: str) -> Model:
    """Read a model written by ``save_model``."""
    with open(path, "r", encoding="ascii") as fh:
        tokens = fh.read().split()
    it = iter(tokens)

    def next_token(what: str) -> str:
        try:
            return next(it)
        except StopIteration:
            raise ModelFormatError("model file ends before %s" % what) from None

    param = Parameter()
    nr_class: Optional[int] = None
    nr_feature: Optional[int] = None
    bias = -1.0
    label: Optional[List[int]] = None

    while True:
        cmd = next_token("the weights")
        if cmd == "solver_type":
            name = next_token("the solver type")
            if name not in SolverType.__members__:
                raise ModelFormatError("unknown solver type.")
            param.solver_type = SolverType[name]
        elif cmd == "nr_class":
            nr_class = _parse(int, next_token("nr_class"), "nr_class")
        elif cmd == "nr_feature":
            nr_feature = _parse(int, next_token("nr_feature"), "nr_feature")
        elif cmd == "bias":
            bias = _parse(float, next_token("bias"), "bias")
        elif cmd == "w":
            break
        elif cmd == "label":
            if nr_class is None:
                raise ModelFormatError("label given before nr_class")
            label = [_parse(int, next_token("labels"), "label") for _ in range(nr_class)]
        else:
            raise ModelFormatError("unknown text in model file: [%s]" % cmd)

    if nr_class is None or nr_feature is None:
        raise ModelFormatError("model file lacks nr_class or nr_feature")

    model = Model(
        param=param, nr_class=nr_class, nr_feature=nr_feature,
        w=[], label=label, bias=bias,
    )
    count = model.weight_size * model.nr_w
    model.w = [_parse(float, next_token("all weights are read"), "weight") for _ in range(count)]
    return model


def check_parameter(prob: Problem, param: Parameter) -> None:
    """Raise ``ParameterError`` if ``param`` cannot be used for training."""
    if param.eps <= 0:
        raise ParameterError("eps <= 0")
    if param.C <= 0:
        raise ParameterError("C <= 0")
    if param.p < 0:
        raise ParameterError("p < 0")
    _solver(param)


def check_probability_model(model: Model) -> bool:
    """True if the model gives probability estimates (logistic regression)."""
    return model.param.solver_type in (
        SolverType.L2R_LR,
        SolverType.L2R_LR_DUAL,
        SolverType.L1R_LR,
    )