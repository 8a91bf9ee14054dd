"""
The `execution` package decides what a line of input is and runs shell
commands on the user's behalf. It knows nothing about the language model.
"""

from .classifier import Classification, Route, classify
from .executor import (
    BatchOutcome,
    CommandOutcome,
    ExecutionMode,
    OutputChunk,
    SessionExecutor,
    StreamingProcess,
    confirm,
    join_session_script,
)
from .history import CommandHistory, MAX_HISTORY_SIZE
from .noise import DEFAULT_NOISE_MARKERS, StderrFilter
from .platforms import POSIX, WINDOWS, command_exists, current_platform, shell_argv


__all__ = [
    "BatchOutcome",
    "Classification",
    "CommandHistory",
    "CommandOutcome",
    "DEFAULT_NOISE_MARKERS",
    "ExecutionMode",
    "MAX_HISTORY_SIZE",
    "OutputChunk",
    "POSIX",
    "Route",
    "SessionExecutor",
    "StderrFilter",
    "StreamingProcess",
    "WINDOWS",
    "classify",
    "command_exists",
    "confirm",
    "current_platform",
    "join_session_script",
    "shell_argv",
]
