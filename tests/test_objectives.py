import math

import pytest

from linclass.blas import dnrm2
from linclass.objectives import L2RL2SvcLoss, L2RL2SvrLoss, L2RLogisticLoss
from linclass.tron import Tron
from linclass.types import Problem


def _problem():
    return Problem(
        n=2,
        y=[1.0, 1.0, -1.0, -1.0],
        x=[
            [(1, 1.0), (2, 0.5)],
            [(1, 0.8)],
            [(2, 1.2)],
            [(1, -0.3), (2, 0.9)],
        ],
    )


def _regression_problem():
    return Problem(
        n=2,
        y=[1.5, -0.7, 2.0],
        x=[[(1, 1.0)], [(2, 1.0)], [(1, 1.0), (2, 1.0)]],
    )


def _numeric_grad(obj, w, h=1e-6):
    out = []
    for k in range(len(w)):
        plus = list(w)
        minus = list(w)
        plus[k] += h
        minus[k] -= h
        out.append((obj.fun(plus) - obj.fun(minus)) / (2 * h))
    return out


@pytest.mark.parametrize(
    "make",
    [
        lambda: L2RLogisticLoss(_problem(), [1.0, 2.0, 1.0, 0.5]),
        lambda: L2RL2SvcLoss(_problem(), [1.0, 2.0, 1.0, 0.5]),
        lambda: L2RL2SvrLoss(_regression_problem(), [1.0, 1.0, 2.0], 0.1),
    ],
)
def test_gradient_matches_finite_differences(make):
    obj = make()
    w = [0.3, -0.2]
    obj.fun(w)
    g = obj.grad(w)
    numeric = _numeric_grad(make(), w)
    for a, b in zip(g, numeric):
        assert a == pytest.approx(b, abs=1e-5)


@pytest.mark.parametrize(
    "make",
    [
        lambda: L2RLogisticLoss(_problem(), [1.0, 2.0, 1.0, 0.5]),
        lambda: L2RL2SvcLoss(_problem(), [1.0, 2.0, 1.0, 0.5]),
        lambda: L2RL2SvrLoss(_regression_problem(), [1.0, 1.0, 2.0], 0.1),
    ],
)
def test_hessian_vector_matches_gradient_difference(make):
    obj = make()
    w = [0.3, -0.2]
    s = [0.7, 0.4]
    h = 1e-6
    obj.fun(w)
    g0 = obj.grad(w)
    hs = obj.hv(s)
    moved = [wi + h * si for wi, si in zip(w, s)]
    obj.fun(moved)
    g1 = obj.grad(moved)
    for a, b0, b1 in zip(hs, g0, g1):
        assert a == pytest.approx((b1 - b0) / h, abs=1e-4)


def test_logistic_value_at_zero():
    obj = L2RLogisticLoss(_problem(), [1.0] * 4)
    assert obj.fun([0.0, 0.0]) == pytest.approx(4 * math.log(2))


def test_svc_value_at_zero_is_sum_of_costs():
    costs = [1.0, 2.0, 1.0, 0.5]
    obj = L2RL2SvcLoss(_problem(), costs)
    assert obj.fun([0.0, 0.0]) == pytest.approx(sum(costs))


def test_svr_zero_loss_inside_tube():
    prob = Problem(n=1, y=[0.05, -0.05], x=[[(1, 1.0)], [(1, 1.0)]])
    obj = L2RL2SvrLoss(prob, [1.0, 1.0], 0.1)
    assert obj.fun([0.0]) == 0.0
    assert obj.grad([0.0]) == [0.0]


def test_nr_variable_is_feature_count():
    assert L2RLogisticLoss(_problem(), [1.0] * 4).nr_variable() == 2
    assert L2RL2SvcLoss(_problem(), [1.0] * 4).nr_variable() == 2


def test_cost_length_mismatch_raises():
    with pytest.raises(ValueError):
        L2RLogisticLoss(_problem(), [1.0])
    with pytest.raises(ValueError):
        L2RL2SvcLoss(_problem(), [1.0, 2.0])


@pytest.mark.parametrize("cls", [L2RLogisticLoss, L2RL2SvcLoss])
def test_tron_minimises_and_separates(cls):
    prob = _problem()
    obj = cls(prob, [1.0] * 4)
    obj.fun([0.0, 0.0])
    g0 = dnrm2(obj.grad([0.0, 0.0]))
    w = Tron(cls(prob, [1.0] * 4), eps=1e-4, print_func=lambda m: None).minimize()
    obj.fun(w)
    assert dnrm2(obj.grad(w)) <= 1e-2 * g0
    for yi, row in zip(prob.y, prob.x):
        score = sum(w[i - 1] * v for i, v in row)
        assert score * yi > 0