from rich.console import Console
from rich.markdown import Markdown

from ...config import Config
from ..agent import Agent


SYSTEM_PROMPT = """
You are a command line expert working as a CLI tool that explains shell commands.
Given a shell command, explain what it does in simple, beginner-friendly terms, including
its components and their roles. If it is a pipeline or a compound command, break it down
and explain each part.

If the input is not a shell command at all, answer it briefly but point out that it is
unrelated to shell commands and that the tool is meant to be used as
`shellmancer explain "<command>"`.

Jump straight to the explanation, with no introductory sentences.
Format the output using Markdown so it reads well in a terminal.
"""


def explain(config: Config, command: str):
    agent = Agent(config, SYSTEM_PROMPT)

    user_task = f"Explain the following command: '{command}'"
    description = agent.ask(user_task) or "The AI failed to generate an explanation."

    console = Console()
    markdown = Markdown(description)
    console.print(markdown)
