import pytest

from linclass.types import Model, Parameter, Problem, SolverType


def _model(solver_type, nr_class, nr_feature=4, bias=-1.0):
    return Model(
        param=Parameter(solver_type=solver_type),
        nr_class=nr_class,
        nr_feature=nr_feature,
        w=[],
        label=list(range(nr_class)),
        bias=bias,
    )


def test_solver_numbers_match_file_format():
    assert SolverType.L2R_LR == 0
    assert SolverType.L2R_LR_DUAL == 7
    assert SolverType.L2R_L2LOSS_SVR == 11
    assert SolverType(13) is SolverType.L2R_L1LOSS_SVR_DUAL


def test_unused_solver_numbers_are_rejected():
    with pytest.raises(ValueError):
        SolverType(8)


@pytest.mark.parametrize(
    "solver, expected",
    [
        (SolverType.L2R_L2LOSS_SVR, True),
        (SolverType.L2R_L2LOSS_SVR_DUAL, True),
        (SolverType.L2R_L1LOSS_SVR_DUAL, True),
        (SolverType.L2R_LR, False),
        (SolverType.MCSVM_CS, False),
        (SolverType.L1R_LR, False),
    ],
)
def test_is_regression(solver, expected):
    assert solver.is_regression is expected


def test_problem_length_follows_targets():
    prob = Problem(n=2, y=[1.0, -1.0, 1.0], x=[[(1, 1.0)], [(2, 1.0)], []])
    assert prob.l == len(prob.y)
    assert prob.bias < 0


def test_parameter_defaults():
    param = Parameter()
    assert param.solver_type is SolverType.L2R_L2LOSS_SVC_DUAL
    assert param.weight_label == [] and param.weight == []
    other = Parameter()
    other.weight.append(2.0)
    assert param.weight == []


def test_binary_model_keeps_one_weight_vector():
    assert _model(SolverType.L2R_LR, 2).nr_w == 1


def test_crammer_singer_binary_keeps_two_vectors():
    assert _model(SolverType.MCSVM_CS, 2).nr_w == 2


def test_multiclass_keeps_one_vector_per_class():
    model = _model(SolverType.L2R_L2LOSS_SVC, 5)
    assert model.nr_w == model.nr_class


def test_weight_size_counts_bias_feature():
    without = _model(SolverType.L2R_LR, 2, nr_feature=6)
    with_bias = _model(SolverType.L2R_LR, 2, nr_feature=6, bias=1.0)
    assert without.weight_size == without.nr_feature
    assert with_bias.weight_size == with_bias.nr_feature + 1