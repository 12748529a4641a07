# linclass

Linear classifiers and regressors for sparse data sets, in pure Python with
no third-party dependencies.

Solvers (`linclass.types.SolverType`):

| value | name | solver |
|------:|------|--------|
| 0  | `L2R_LR` | L2-regularized logistic regression (primal) |
| 1  | `L2R_L2LOSS_SVC_DUAL` | L2-regularized L2-loss support vector classification (dual), the default |
| 2  | `L2R_L2LOSS_SVC` | L2-regularized L2-loss support vector classification (primal) |
| 3  | `L2R_L1LOSS_SVC_DUAL` | L2-regularized L1-loss support vector classification (dual) |
| 4  | `MCSVM_CS` | multi-class support vector classification by Crammer and Singer |
| 5  | `L1R_L2LOSS_SVC` | L1-regularized L2-loss support vector classification |
| 6  | `L1R_LR` | L1-regularized logistic regression |
| 7  | `L2R_LR_DUAL` | L2-regularized logistic regression (dual) |
| 11 | `L2R_L2LOSS_SVR` | L2-regularized L2-loss support vector regression (primal) |
| 12 | `L2R_L2LOSS_SVR_DUAL` | L2-regularized L2-loss support vector regression (dual) |
| 13 | `L2R_L1LOSS_SVR_DUAL` | L2-regularized L1-loss support vector regression (dual) |

Classification with more than two classes (other than solver 4) trains one
weight vector per class, one class against the rest.

## Installation

```
pip install .
```

## Command line

Training data is read in the sparse text format

```
label index:value index:value ...
```

one instance per line, with feature indices starting at 1 and strictly
increasing. A malformed line stops the run with
`Wrong input format at line N`.

```
linclass-train [options] training_set_file [model_file]
```

Options:

- `-s type`: solver type (default 1)
- `-c cost`: the parameter C (default 1)
- `-p epsilon`: epsilon in the SVR loss (default 0.1)
- `-e epsilon`: stopping tolerance; the default depends on the solver
  (0.01 for 0, 2, 5 and 6; 0.001 for 11; 0.1 for 1, 3, 4, 7, 12 and 13)
- `-B bias`: if `bias >= 0`, each instance gets an extra constant feature of
  that value (default -1, no bias)
- `-wi weight`: multiply C for class label `i` by `weight`, e.g. `-w1 2`
- `-v n`: n-fold cross validation (n >= 2) instead of saving a model
- `-q`: quiet mode, no progress output

Without a model file name the model is written to
`<training file name>.model` in the current directory. With `-v`, the
accuracy is printed for classification, and the mean squared error and the
squared correlation coefficient for regression.

```
linclass-train -s 0 -c 4 data.txt data.model
linclass-train -v 5 data.txt
```

The command exits with status 1 on a usage error (printing the usage text),
an unreadable or malformed input file, invalid parameters, or a model file
that cannot be written.

There is no command for predicting with a saved model; use
`linclass.linear.load_model` and `linclass.linear.predict` from Python, as
below.

## Library

```python
from linclass.train_cli import read_problem
from linclass.types import Parameter, SolverType
from linclass.linear import (
    train, predict, predict_values, predict_probability,
    cross_validation, save_model, load_model, check_parameter,
)

prob = read_problem("data.txt", -1)
param = Parameter(solver_type=SolverType.L2R_LR, eps=0.01, C=1.0)
check_parameter(prob, param)
model = train(prob, param)

label = predict(model, prob.x[0])
label, decision_values = predict_values(model, prob.x[0])
label, probabilities = predict_probability(model, prob.x[0])

targets = cross_validation(prob, param, 5)

save_model("data.model", model)
model = load_model("data.model")
```

A `Problem` holds the number of features `n`, the targets `y` and the
instances `x`, each a list of `(index, value)` pairs; a `Model` holds the
weights, class labels, feature count and bias.

- `check_parameter` raises `ParameterError` when `eps <= 0`, `C <= 0`,
  `p < 0` or the solver type is unknown.
- `predict_probability` works only for the logistic-regression solvers
  (0, 6 and 7, see `check_probability_model`) and raises `ParameterError`
  otherwise.
- `load_model` raises `ModelFormatError` for a model file it cannot read.
- Features with indices beyond those seen in training are ignored at
  prediction time.

Progress messages go to standard output. Call
`linclass.reporting.set_print_string_function` with your own callable to
redirect them, or with `None` to restore the default.

Training functions that shuffle their working order (`train`,
`cross_validation` and the solvers in `linclass.dual_solvers`,
`linclass.l1_solvers` and `linclass.mcsvm`) accept an `rng` argument, a
`random.Random`, so that results can be reproduced.

## Modules

- `linclass.types`: `SolverType`, `Problem`, `Parameter`, `Model`
- `linclass.linear`: training, prediction, cross validation, model files
- `linclass.train_cli`: the `linclass-train` command and `read_problem`
- `linclass.tron`: trust-region Newton solver for the primal objectives
- `linclass.objectives`: logistic, squared hinge and squared SVR losses
- `linclass.dual_solvers`, `linclass.l1_solvers`, `linclass.mcsvm`:
  coordinate descent solvers
- `linclass.blas`: small dense vector helpers
- `linclass.reporting`: progress output