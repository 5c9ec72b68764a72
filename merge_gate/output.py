"""Structured output, logging setup and fatal-exit helpers for the merge gate.

Decisions are printed as ``key=value`` lines so workflow logs stay greppable,
and mirrored into ``$GITHUB_OUTPUT`` so later steps can read them.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import typing as typ
from pathlib import Path

__all__ = ["configure_logging", "emit", "fail", "write_output"]

_LOG_FORMAT = "%(levelname)s: %(message)s"


def _log_value(value: object) -> str:
    """Format a value for key=value log output."""
    if value is None:
        return ""
    if isinstance(value, tuple):
        value = list(value)
    if isinstance(value, (list, dict)):
        return json.dumps(value, sort_keys=True)
    return str(value)


def write_output(key: str, value: str) -> None:
    """Append ``key=value`` to ``$GITHUB_OUTPUT`` when running under Actions."""
    if output_path := os.environ.get("GITHUB_OUTPUT"):
        path = Path(output_path)
        with path.open("a", encoding="utf-8") as handle:
            handle.write(f"{key}={value}\n")


def emit(key: str, value: object, *, stream: typ.TextIO | None = None) -> None:
    """Print a key=value pair to stdout or the specified stream."""
    target = stream if stream is not None else sys.stdout
    formatted = _log_value(value)
    print(f"{key}={formatted}", file=target)
    write_output(key, formatted)


def fail(message: str) -> typ.NoReturn:
    """Log an error and exit with status code 1."""
    emit("merge_gate_status", "error", stream=sys.stderr)
    emit("merge_gate_error", message, stream=sys.stderr)
    print(f"::error::{message}", file=sys.stderr)
    raise SystemExit(1)


def configure_logging() -> None:
    """Route log records to stderr, at DEBUG level when ``RUNNER_DEBUG=1``."""
    level = logging.DEBUG if os.environ.get("RUNNER_DEBUG") == "1" else logging.INFO
    logging.basicConfig(level=level, format=_LOG_FORMAT, stream=sys.stderr)
