"""Shell quoting helpers.

Thin wrappers around shlex.quote so the rest of the package has one place
that decides how arguments reach the remote POSIX shell.
"""
from __future__ import annotations

import shlex
from collections.abc import Sequence


def quote_arg(arg: str) -> str:
    """Return a shell token that evaluates to exactly ``arg``."""
    return shlex.quote(arg)


def join_args(args: Sequence[str]) -> str:
    """Quote each argument and join them with single spaces."""
    return ' '.join(quote_arg(a) for a in args)
