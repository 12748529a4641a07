import random

import pytest

from linclass.dual_solvers import (
    solve_l2r_l1l2_svc,
    solve_l2r_l1l2_svr,
    solve_l2r_lr_dual,
)
from linclass.reporting import set_print_string_function
from linclass.types import Parameter, Problem, SolverType


@pytest.fixture(autouse=True)
def quiet():
    set_print_string_function(lambda message: None)
    yield
    set_print_string_function(None)


def _classification(labels=(1, 1, 1, -1, -1, -1)):
    x = [
        [(1, 2.0), (2, 1.0)],
        [(1, 3.0), (2, 1.0)],
        [(1, 1.5), (2, 1.0)],
        [(1, -2.0), (2, 1.0)],
        [(1, -3.0), (2, 1.0)],
        [(1, -1.5), (2, 1.0)],
    ]
    return Problem(n=2, y=[float(v) for v in labels], x=x)


def _regression():
    x = [[(1, float(v))] for v in (1, 2, 3)]
    y = [2.0 * v for v in (1, 2, 3)]
    return Problem(n=1, y=y, x=x)


def _decision(w, row):
    return sum(w[idx - 1] * val for idx, val in row)


@pytest.mark.parametrize(
    "solver_type",
    [SolverType.L2R_L2LOSS_SVC_DUAL, SolverType.L2R_L1LOSS_SVC_DUAL],
)
def test_svc_separates_training_data(solver_type):
    prob = _classification()
    w = solve_l2r_l1l2_svc(prob, 0.1, 1.0, 1.0, solver_type, random.Random(1))
    assert len(w) == prob.n
    for yi, row in zip(prob.y, prob.x):
        assert _decision(w, row) * yi > 0


def test_l1_svc_weights_bounded_by_cost():
    prob = _classification()
    C = 0.01
    w = solve_l2r_l1l2_svc(
        prob, 0.1, C, C, SolverType.L2R_L1LOSS_SVC_DUAL, random.Random(3)
    )
    for j in range(prob.n):
        bound = C * sum(abs(v) for row in prob.x for idx, v in row if idx == j + 1)
        assert abs(w[j]) <= bound + 1e-12


def test_svc_is_deterministic_for_seed():
    prob = _classification()
    w1 = solve_l2r_l1l2_svc(
        prob, 0.1, 1.0, 1.0, SolverType.L2R_L2LOSS_SVC_DUAL, random.Random(7)
    )
    w2 = solve_l2r_l1l2_svc(
        prob, 0.1, 1.0, 1.0, SolverType.L2R_L2LOSS_SVC_DUAL, random.Random(7)
    )
    assert w1 == w2


def test_svc_non_positive_labels_are_negative():
    neg_one = _classification((1, 1, 1, -1, -1, -1))
    zero = _classification((1, 1, 1, 0, 0, 0))
    w1 = solve_l2r_l1l2_svc(
        neg_one, 0.1, 1.0, 1.0, SolverType.L2R_L2LOSS_SVC_DUAL, random.Random(5)
    )
    w2 = solve_l2r_l1l2_svc(
        zero, 0.1, 1.0, 1.0, SolverType.L2R_L2LOSS_SVC_DUAL, random.Random(5)
    )
    assert w1 == w2


def test_empty_problems_give_zero_weights():
    empty = Problem(n=3, y=[], x=[])
    assert solve_l2r_l1l2_svc(
        empty, 0.1, 1.0, 1.0, SolverType.L2R_L2LOSS_SVC_DUAL, random.Random(0)
    ) == [0.0, 0.0, 0.0]
    assert solve_l2r_lr_dual(empty, 0.1, 1.0, 1.0, random.Random(0)) == [0.0] * 3
    param = Parameter(solver_type=SolverType.L2R_L2LOSS_SVR_DUAL, eps=0.1, C=1.0, p=0.1)
    assert solve_l2r_l1l2_svr(
        empty, param, SolverType.L2R_L2LOSS_SVR_DUAL, random.Random(0)
    ) == [0.0] * 3


@pytest.mark.parametrize(
    "solver_type",
    [SolverType.L2R_L2LOSS_SVR_DUAL, SolverType.L2R_L1LOSS_SVR_DUAL],
)
def test_svr_recovers_slope(solver_type):
    prob = _regression()
    param = Parameter(solver_type=solver_type, eps=0.001, C=100.0, p=0.1)
    w = solve_l2r_l1l2_svr(prob, param, solver_type, random.Random(2))
    assert len(w) == 1
    assert abs(w[0] - 2.0) < 0.15


def test_svr_wide_tube_keeps_zero_weights():
    prob = _regression()
    param = Parameter(solver_type=SolverType.L2R_L1LOSS_SVR_DUAL, eps=0.1, C=1.0, p=100.0)
    w = solve_l2r_l1l2_svr(
        prob, param, SolverType.L2R_L1LOSS_SVR_DUAL, random.Random(0)
    )
    assert w == [0.0]


def test_lr_dual_separates_training_data():
    prob = _classification()
    w = solve_l2r_lr_dual(prob, 0.1, 1.0, 1.0, random.Random(4))
    for yi, row in zip(prob.y, prob.x):
        assert _decision(w, row) * yi > 0


def test_progress_output_reports_finish():
    messages = []
    set_print_string_function(messages.append)
    solve_l2r_l1l2_svc(
        _classification(), 0.1, 1.0, 1.0, SolverType.L2R_L2LOSS_SVC_DUAL, random.Random(0)
    )
    text = "".join(messages)
    assert "optimization finished" in text
    assert "nSV = " in text