from rich.console import Console
from rich.syntax import Syntax

from ...config import Config
from ..agent import Agent


SYSTEM_PROMPT = """
You are a highly experienced Unix system administrator. Given a description of a task,
write a bash script that performs it.

- Output only the script, ready to be copied. No introduction, no closing remarks.
- Start the script with comment lines describing what it does and its severity level
  (low, medium or high, depending on how much it can change or destroy).
- Do not wrap the script in Markdown code fences.
"""


def _strip_code_fences(script: str) -> str:
    lines = script.strip().splitlines()
    if lines and lines[0].startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines)


def generate_script(config: Config, description: str):
    """Generates a bash script from a natural language description and prints it."""
    agent = Agent(config, SYSTEM_PROMPT)
    script = agent.ask(f"Generate a bash script to {description}")

    console = Console()
    if not script:
        console.print("[red]The AI failed to generate a script.[/]")
        return

    console.print("[bold blue]Generated script:[/]")
    console.print(Syntax(_strip_code_fences(script), "bash"))
