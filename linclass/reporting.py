"""Progress output shared by the solvers, redirectable by the caller."""

from __future__ import annotations

import sys
from typing import Callable, Optional

PrintFunction = Callable[[str], None]


def _print_stdout(message: str) -> None:
    sys.stdout.write(message)
    sys.stdout.flush()


_printer: PrintFunction = _print_stdout


def set_print_string_function(func: Optional[PrintFunction]) -> None:
    """Send progress output to ``func``; ``None`` restores standard output."""
    global _printer
    _printer = _print_stdout if func is None else func


def info(message: str) -> None:
    """Emit a progress message through the current print function."""
    _printer(message)