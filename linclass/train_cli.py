"""Command-line trainer: read a sparse data file, train a model and save it."""

from __future__ import annotations

import math
import os
import random
import re
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .linear import ParameterError, check_parameter, cross_validation, save_model, train
from .reporting import set_print_string_function
from .types import Instance, Parameter, Problem, SolverType

USAGE = (
    "Usage: train [options] training_set_file [model_file]\n"
    "options:\n"
    "-s type : set type of solver (default 1)\n"
    "  for multi-class classification\n"
    "\t 0 -- L2-regularized logistic regression (primal)\n"
    "\t 1 -- L2-regularized L2-loss support vector classification (dual)\n"
    "\t 2 -- L2-regularized L2-loss support vector classification (primal)\n"
    "\t 3 -- L2-regularized L1-loss support vector classification (dual)\n"
    "\t 4 -- support vector classification by Crammer and Singer\n"
    "\t 5 -- L1-regularized L2-loss support vector classification\n"
    "\t 6 -- L1-regularized logistic regression\n"
    "\t 7 -- L2-regularized logistic regression (dual)\n"
    "  for regression\n"
    "\t11 -- L2-regularized L2-loss support vector regression (primal)\n"
    "\t12 -- L2-regularized L2-loss support vector regression (dual)\n"
    "\t13 -- L2-regularized L1-loss support vector regression (dual)\n"
    "-c cost : set the parameter C (default 1)\n"
    "-p epsilon : set the epsilon in loss function of SVR (default 0.1)\n"
    "-e epsilon : set tolerance of termination criterion\n"
    "\t-s 0 and 2\n"
    "\t\t|f'(w)|_2 <= eps*min(pos,neg)/l*|f'(w0)|_2,\n"
    "\t\twhere f is the primal function and pos/neg are # of\n"
    "\t\tpositive/negative data (default 0.01)\n"
    "\t-s 11\n"
    "\t\t|f'(w)|_2 <= eps*|f'(w0)|_2 (default 0.001)\n"
    "\t-s 1, 3, 4, and 7\n"
    "\t\tDual maximal violation <= eps; similar to libsvm (default 0.1)\n"
    "\t-s 5 and 6\n"
    "\t\t|f'(w)|_1 <= eps*min(pos,neg)/l*|f'(w0)|_1,\n"
    "\t\twhere f is the primal function (default 0.01)\n"
    "\t-s 12 and 13\n"
    "\t\t|f'(alpha)|_1 <= eps |f'(alpha0)|,\n"
    "\t\twhere f is the dual function (default 0.1)\n"
    "-B bias : if bias >= 0, instance x becomes [x; bias]; if < 0, no bias term added (default -1)\n"
    "-wi weight: weights adjust the parameter C of different classes (see README for details)\n"
    "-v n: n-fold cross validation mode\n"
    "-q : quiet mode (no outputs)\n"
)


class UsageError(ValueError):
    """Raised when the command line cannot be understood."""


class InputFormatError(ValueError):
    """Raised when a line of the training file is malformed."""

    def __init__(self, line: int) -> None:
        super().__init__("Wrong input format at line %d" % line)
        self.line = line


@dataclass
class TrainOptions:
    """Everything the command line selects."""

    param: Parameter
    input_file: str
    model_file: str
    bias: float = -1.0
    cross_validation: bool = False
    nr_fold: int = 0
    quiet: bool = False


_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)
_FLOAT_FULL = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)\Z",
    re.IGNORECASE,
)
_HEX_FLOAT = re.compile(r"[+-]?0[xX][0-9a-fA-F.]+(?:[pP][+-]?\d+)?\Z")
_INT_FULL = re.compile(r"[+-]?\d+\Z")


def _atoi(text: str) -> int:
    """Leading integer of ``text``, or 0 when there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    """Leading number of ``text``, or 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(0).strip()) if match else 0.0


def _number(token: str) -> float:
    """Parse a whole token as a number; raise ValueError otherwise."""
    if _FLOAT_FULL.match(token):
        return float(token)
    if _HEX_FLOAT.match(token):
        return float.fromhex(token)
    raise ValueError(token)


def _solver_type(value: int) -> Union[SolverType, int]:
    try:
        return SolverType(value)
    except ValueError:
        return value


def default_eps(solver_type: Union[SolverType, int]) -> float:
    """Default stopping tolerance for a solver; infinity for an unknown one."""
    if solver_type in (SolverType.L2R_LR, SolverType.L2R_L2LOSS_SVC):
        return 0.01
    if solver_type == SolverType.L2R_L2LOSS_SVR:
        return 0.001
    if solver_type in (
        SolverType.L2R_L2LOSS_SVC_DUAL,
        SolverType.L2R_L1LOSS_SVC_DUAL,
        SolverType.MCSVM_CS,
        SolverType.L2R_LR_DUAL,
    ):
        return 0.1
    if solver_type in (SolverType.L1R_L2LOSS_SVC, SolverType.L1R_LR):
        return 0.01
    if solver_type in (SolverType.L2R_L1LOSS_SVR_DUAL, SolverType.L2R_L2LOSS_SVR_DUAL):
        return 0.1
    return math.inf


def parse_command_line(argv: Sequence[str]) -> TrainOptions:
    """Parse the arguments that follow the program name."""
    param = Parameter(
        solver_type=SolverType.L2R_L2LOSS_SVC_DUAL, eps=math.inf, C=1.0, p=0.1
    )
    bias = -1.0
    cv = False
    nr_fold = 0
    quiet = False

    args = list(argv)
    i = 0
    while i < len(args):
        option = args[i]
        if not option.startswith("-"):
            break
        i += 1
        if i >= len(args):
            raise UsageError("")
        value = args[i]
        letter = option[1:2]
        if letter == "s":
            param.solver_type = _solver_type(_atoi(value))
        elif letter == "c":
            param.C = _atof(value)
        elif letter == "p":
            param.p = _atof(value)
        elif letter == "e":
            param.eps = _atof(value)
        elif letter == "B":
            bias = _atof(value)
        elif letter == "w":
            param.weight_label.append(_atoi(option[2:]))
            param.weight.append(_atof(value))
        elif letter == "v":
            cv = True
            nr_fold = _atoi(value)
            if nr_fold < 2:
                raise UsageError("n-fold cross validation: n must >= 2")
        elif letter == "q":
            quiet = True
            i -= 1
        else:
            raise UsageError("unknown option: -%s" % letter)
        i += 1

    if i >= len(args):
        raise UsageError("")
    input_file = args[i]
    if i < len(args) - 1:
        model_file = args[i + 1]
    else:
        model_file = input_file.rsplit("/", 1)[-1] + ".model"

    if param.eps == math.inf:
        param.eps = default_eps(param.solver_type)

    return TrainOptions(
        param=param,
        input_file=input_file,
        model_file=model_file,
        bias=bias,
        cross_validation=cv,
        nr_fold=nr_fold,
        quiet=quiet,
    )


def _parse_line(line: str, line_no: int) -> tuple:
    tokens = line.split()
    if not tokens:
        raise InputFormatError(line_no)
    try:
        label = _number(tokens[0])
    except ValueError:
        raise InputFormatError(line_no) from None

    instance: Instance = []
    last_index = 0
    for token in tokens[1:]:
        idx_text, sep, val_text = token.partition(":")
        if not sep or not _INT_FULL.match(idx_text):
            raise InputFormatError(line_no)
        index = int(idx_text)
        if index <= last_index or index > 2**31 - 1:
            raise InputFormatError(line_no)
        try:
            value = _number(val_text)
        except ValueError:
            raise InputFormatError(line_no) from None
        instance.append((index, value))
        last_index = index
    return label, instance, last_index


def read_problem(path: Union[str, os.PathLike], bias: float = -1.0) -> Problem:
    """Read a training file in sparse ``label index:value ...`` format.

    A non-negative ``bias`` appends a feature of that value to every
    instance, as the feature after the largest index seen.
    """
    y: List[float] = []
    x: List[Instance] = []
    max_index = 0
    with open(path, "r") as fh:
        for line_no, line in enumerate(fh, start=1):
            label, instance, inst_max = _parse_line(line, line_no)
            y.append(label)
            x.append(instance)
            max_index = max(max_index, inst_max)

    if bias >= 0:
        n = max_index + 1
        for instance in x:
            instance.append((n, bias))
    else:
        n = max_index
    return Problem(n=n, y=y, x=x, bias=bias)


def _c_div(a: float, b: float) -> float:
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a)


def _is_regression(solver_type: Union[SolverType, int]) -> bool:
    return isinstance(solver_type, SolverType) and solver_type.is_regression


def do_cross_validation(
    prob: Problem,
    param: Parameter,
    nr_fold: int,
    rng: Optional[random.Random] = None,
) -> str:
    """Run cross validation and return the report text.

    Classification reports accuracy; regression reports mean squared error
    and the squared correlation coefficient.
    """
    target = cross_validation(prob, param, nr_fold, rng)
    l = prob.l
    if _is_regression(_solver_type(int(param.solver_type))):
        total_error = sumv = sumy = sumvv = sumyy = sumvy = 0.0
        for y, v in zip(prob.y, target):
            total_error += (v - y) * (v - y)
            sumv += v
            sumy += y
            sumvv += v * v
            sumyy += y * y
            sumvy += v * y
        numerator = (l * sumvy - sumv * sumy) * (l * sumvy - sumv * sumy)
        denominator = (l * sumvv - sumv * sumv) * (l * sumyy - sumy * sumy)
        return (
            "Cross Validation Mean squared error = %g\n" % _c_div(total_error, l)
            + "Cross Validation Squared correlation coefficient = %g\n"
            % _c_div(numerator, denominator)
        )
    total_correct = sum(1 for t, y in zip(target, prob.y) if t == y)
    return "Cross Validation Accuracy = %g%%\n" % _c_div(100.0 * total_correct, l)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the trainer; returns the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    try:
        options = parse_command_line(args)
    except UsageError as exc:
        if str(exc):
            sys.stderr.write("%s\n" % exc)
        sys.stdout.write(USAGE)
        return 1

    set_print_string_function((lambda message: None) if options.quiet else None)
    try:
        try:
            prob = read_problem(options.input_file, options.bias)
        except InputFormatError as exc:
            sys.stderr.write("%s\n" % exc)
            return 1
        except OSError:
            sys.stderr.write("can't open input file %s\n" % options.input_file)
            return 1

        try:
            check_parameter(prob, options.param)
        except ParameterError as exc:
            sys.stderr.write("ERROR: %s\n" % exc)
            return 1

        try:
            if options.cross_validation:
                sys.stdout.write(
                    do_cross_validation(prob, options.param, options.nr_fold)
                )
                return 0
            model = train(prob, options.param)
        except ValueError as exc:
            sys.stderr.write("ERROR: %s\n" % exc)
            return 1

        try:
            save_model(options.model_file, model)
        except OSError:
            sys.stderr.write("can't save model to file %s\n" % options.model_file)
            return 1
        return 0
    finally:
        set_print_string_function(None)