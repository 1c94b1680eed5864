"""
Commands - CLI command implementations for ethmanage.

Each module corresponds to a group of top-level CLI commands:
- accounts: create-account, list-accounts
- balance:  check-balance
- transfer: transfer-eth, transfer-token
"""

from __future__ import annotations

import functools
import sys
from typing import Any, Callable, TypeVar

import click

from ..errors import EthManageError

F = TypeVar("F", bound=Callable[..., Any])


def handle_errors(func: F) -> F:
    """Render any ``EthManageError`` and exit with its exit code."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except EthManageError as exc:
            click.secho(f"ERROR: {exc}", fg="red", err=True)
            sys.exit(exc.exit_code)

    return wrapper  # type: ignore[return-value]
