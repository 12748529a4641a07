[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "linclass"
version = "0.1.0"
description = "Linear classification and regression: L1/L2-regularized logistic regression, linear SVM and SVR solvers"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "machine-learning",
    "svm",
    "logistic-regression",
    "linear-classification",
    "regression",
    "sparse",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
linclass-train = "linclass.train_cli:main"

[tool.hatch.build.targets.wheel]
packages = ["linclass"]

[tool.pytest.ini_options]
addopts = "-ra"
