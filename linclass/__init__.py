"""Linear classification and regression with L1/L2-regularized solvers."""

__version__ = "0.1.0"

__all__ = [
    "blas",
    "dual_solvers",
    "l1_solvers",
    "linear",
    "mcsvm",
    "objectives",
    "reporting",
    "train_cli",
    "tron",
    "types",
]