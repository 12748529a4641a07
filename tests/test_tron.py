import pytest

from linclass.blas import dnrm2
from linclass.tron import Function, Tron


class Quadratic(Function):
    """0.5 * w'Aw - b'w for a symmetric positive definite A."""

    def __init__(self, a, b):
        self.a = a
        self.b = b
        self.fun_calls = 0

    def _apply(self, v):
        return [sum(aij * vj for aij, vj in zip(row, v)) for row in self.a]

    def fun(self, w):
        self.fun_calls += 1
        aw = self._apply(w)
        return 0.5 * sum(wi * ai for wi, ai in zip(w, aw)) - sum(
            bi * wi for bi, wi in zip(self.b, w)
        )

    def grad(self, w):
        return [ai - bi for ai, bi in zip(self._apply(w), self.b)]

    def hv(self, s):
        return self._apply(s)

    def nr_variable(self):
        return len(self.b)


def _quiet(messages):
    return messages.append


def test_function_is_abstract():
    with pytest.raises(TypeError):
        Function()


def test_converges_to_small_gradient():
    obj = Quadratic([[4.0, 1.0, 0.0], [1.0, 3.0, 0.5], [0.0, 0.5, 2.0]], [1.0, -2.0, 0.5])
    eps = 1e-6
    messages = []
    w = Tron(obj, eps=eps, print_func=_quiet(messages)).minimize()
    assert dnrm2(obj.grad(w)) <= eps * dnrm2(obj.b)
    assert obj.fun(w) < obj.fun([0.0, 0.0, 0.0])


def test_progress_lines_follow_format():
    obj = Quadratic([[2.0, 0.0], [0.0, 5.0]], [1.0, 1.0])
    messages = []
    Tron(obj, eps=1e-8, print_func=_quiet(messages)).minimize()
    iter_lines = [m for m in messages if m.startswith("iter")]
    assert iter_lines[0].startswith("iter  1 act ")
    assert all(line.endswith("\n") for line in iter_lines)


def test_small_curvature_hits_trust_region_boundary():
    obj = Quadratic([[0.01, 0.0], [0.0, 0.01]], [1.0, 1.0])
    messages = []
    w = Tron(obj, eps=1e-3, print_func=_quiet(messages)).minimize()
    assert "cg reaches trust region boundary\n" in messages
    assert dnrm2(obj.grad(w)) <= 1e-3 * dnrm2(obj.b)


def test_zero_gradient_at_start_returns_origin_without_output():
    obj = Quadratic([[1.0, 0.0], [0.0, 1.0]], [0.0, 0.0])
    messages = []
    w = Tron(obj, print_func=_quiet(messages)).minimize()
    assert w == [0.0, 0.0]
    assert messages == []


def test_no_iterations_allowed_returns_start():
    obj = Quadratic([[3.0, 0.0], [0.0, 3.0]], [1.0, 2.0])
    messages = []
    w = Tron(obj, eps=1e-6, max_iter=0, print_func=_quiet(messages)).minimize()
    assert w == [0.0] * obj.nr_variable()
    assert obj.fun_calls == 1


def test_looser_tolerance_needs_no_more_iterations():
    a = [[4.0, 1.0], [1.0, 3.0]]
    b = [2.0, -1.0]
    loose, tight = [], []
    Tron(Quadratic(a, b), eps=0.5, print_func=loose.append).minimize()
    Tron(Quadratic(a, b), eps=1e-10, print_func=tight.append).minimize()
    count = lambda msgs: sum(m.startswith("iter") for m in msgs)  # noqa: E731
    assert count(loose) <= count(tight)


def test_default_output_goes_to_stdout(capsys):
    obj = Quadratic([[2.0, 0.0], [0.0, 2.0]], [1.0, 3.0])
    Tron(obj, eps=1e-4).minimize()
    assert "iter  1 act" in capsys.readouterr().out