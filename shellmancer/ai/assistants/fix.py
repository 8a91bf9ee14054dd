from rich.console import Console
from rich.markdown import Markdown

from ...config import Config
from ..agent import Agent


SYSTEM_PROMPT = """
You are an experienced system administrator helping a user who got an error in their terminal.
Explain what is most likely causing the error and suggest possible fixes as short, actionable
steps. Prefer the simplest fix first. Include the exact commands to run when a command helps.
Format the output using Markdown.
"""


def fix(config: Config, error_message: str):
    """
    Asks the AI for the probable cause of a terminal error and how to fix it.
    """
    agent = Agent(config, SYSTEM_PROMPT)

    user_task = f'I\'m receiving the following error message in my terminal:\n\n"{error_message}"'
    suggestion = agent.ask(user_task) or "The AI failed to suggest a fix."

    console = Console()
    console.print("[bold blue]Suggested fix:[/]")
    console.print(Markdown(suggestion))
