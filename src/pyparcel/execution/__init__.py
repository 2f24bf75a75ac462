"""Subprocess, concurrency and retry helpers."""

from pyparcel.execution.parallel import BoundedExecutor, map_bounded
from pyparcel.execution.retry import call_with_retry, is_retryable
from pyparcel.execution.runner import run_process

__all__ = [
    "BoundedExecutor",
    "call_with_retry",
    "is_retryable",
    "map_bounded",
    "run_process",
]
