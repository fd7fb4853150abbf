"""Utility functions for squeakbuild."""

from __future__ import annotations

import os
import shlex
from typing import List, Optional

from squeakbuild.constants import _LOG_VERBOSE, TRUTHY
from squeakbuild.exceptions import ConfigurationError


def log(level: str, message: str) -> None:
    """Lightweight levelled logging to stdout with ANSI colours."""
    if level == "DEBUG" and not _LOG_VERBOSE:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    print(f"{colour}[{level}]{reset} {message}", flush=True)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in TRUTHY


def parse_int_env(name: str, default: str, min_val: int = 1, max_val: Optional[int] = None) -> int:
    raw = get_env(name, default)
    assert raw is not None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer (got '{raw}')")
    if value < min_val:
        raise ConfigurationError(f"{name} must be >= {min_val} (got {value})")
    if max_val is not None and value > max_val:
        raise ConfigurationError(f"{name} must be <= {max_val} (got {value})")
    return value


def format_command(cmd: List[str]) -> str:
    """Render an argument list as a copy-pasteable shell line."""
    return " ".join(shlex.quote(part) for part in cmd)


def write_line(sink, message: str) -> None:
    """Append one plain line to a build log sink."""
    sink.write(message + "\n")
    flush = getattr(sink, "flush", None)
    if flush is not None:
        flush()
