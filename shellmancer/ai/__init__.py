"""
The `ai` package provides the assistants of the command-line tool, each built
on a single-shot agent backed by the LLM client.
"""

from .agent import Agent
from .conversation import Conversation
from .assistants.automate import automate
from .assistants.explain import explain
from .assistants.fix import fix
from .assistants.generate_script import generate_script
from .assistants.interactive import InteractiveShell, interactive_shell
from .assistants.system_info import system_info


__all__ = [
    "Agent",
    "Conversation",
    "InteractiveShell",
    "automate",
    "explain",
    "fix",
    "generate_script",
    "interactive_shell",
    "system_info",
]
