from dataclasses import dataclass
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from ...config import Config
from ...execution import (
    WINDOWS,
    BatchOutcome,
    ExecutionMode,
    SessionExecutor,
    confirm,
    current_platform,
)
from ..agent import Agent


SYSTEM_PROMPT = """
You are a command line automation expert working on the user's own machine.
Follow the output format the request asks for exactly.
"""

POSIX_PROMPT = """Generate a list of shell commands to {description} and output them as plain text, one command per line, with no markdown formatting or extra explanations.
For each command that depends on a resource (such as a Docker container, a directory or a file), include a pre-check that verifies the resource exists instead of running the command unconditionally.
For a Docker command like "docker start my-container", output:
if docker inspect my-container > /dev/null 2>&1; then docker start my-container; else echo "Container my-container does not exist"; fi
For a directory command like "cd /path/to/dir", output:
if [ -d /path/to/dir ]; then cd /path/to/dir; else echo "Directory /path/to/dir does not exist"; fi
For a file command like "cat /path/to/file", output:
if [ -f /path/to/file ]; then cat /path/to/file; else echo "File /path/to/file does not exist"; fi

Use POSIX shell syntax only. Do not use PowerShell cmdlets such as New-Item, Set-Location or Test-Path.

CRITICAL: when creating files inside a new folder, change into that folder FIRST, then create the files. For example:
mkdir my_folder
cd my_folder
touch file1.txt
cd .."""

WINDOWS_PROMPT = """Generate a list of PowerShell commands to {description} and output them as plain text, one command per line, with no markdown formatting or extra explanations.
You are on Windows PowerShell. Use PowerShell syntax, NOT bash/Unix syntax: use cmdlets like New-Item, Set-Content, Get-Content, Test-Path and Set-Location, never mkdir -p, touch, cat, ls flags or [ -d ] tests.
For each command that depends on a resource (such as a Docker container, a directory or a file), include a pre-check that verifies the resource exists. For example:
if (Test-Path "my_folder") {{ Set-Location "my_folder" }} else {{ Write-Host "Directory my_folder does not exist" }}
if (Test-Path "file.txt") {{ Get-Content "file.txt" }} else {{ Write-Host "File file.txt does not exist" }}
Other useful forms:
New-Item -ItemType Directory -Path "my_folder" -Force
New-Item -ItemType File -Path "file.txt" -Force
Set-Content -Path "file.txt" -Value "content here"

CRITICAL: when creating files inside a new folder, change into that folder FIRST, then create the files. For example:
New-Item -ItemType Directory -Path "my_folder" -Force
Set-Location "my_folder"
New-Item -ItemType File -Path "file1.txt" -Force
Set-Location ..
"""

CODE_FENCE = "```"


@dataclass
class GeneratedScript:
    """The model's raw reply and the commands extracted from it, in order."""

    raw: str
    commands: List[str]


def build_automation_prompt(description: str, platform: str) -> str:
    template = WINDOWS_PROMPT if platform == WINDOWS else POSIX_PROMPT
    return template.format(description=description)


def parse_command_batch(text: str) -> List[str]:
    """
    Extracts the commands from a model reply: one per line, trimmed, skipping
    blank lines, comments and Markdown code fences. Order is preserved since
    later commands may rely on earlier ones.
    """
    commands = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith(CODE_FENCE):
            continue
        commands.append(line)
    return commands


def generate_commands(agent: Agent, description: str, platform: str) -> Optional[GeneratedScript]:
    """Returns None when the model gave no answer at all."""
    reply = agent.ask(build_automation_prompt(description, platform))
    if reply is None:
        return None
    return GeneratedScript(raw=reply, commands=parse_command_batch(reply))


def automate(
    config: Config,
    description: str,
    cwd: Optional[str] = None,
    agent: Optional[Agent] = None,
    executor: Optional[SessionExecutor] = None,
    console: Optional[Console] = None,
    platform: Optional[str] = None,
) -> Optional[BatchOutcome]:
    """
    Generates shell commands for a task and, if the user agrees, runs them.
    Returns the outcome of the run, or None when nothing was executed.
    """
    console = console or Console()
    description = description.strip()
    if not description:
        console.print("[red]Please provide a task description for automation.[/]")
        return None

    platform = platform or current_platform()
    agent = agent or Agent(config, SYSTEM_PROMPT)

    console.print("[blue]Generating automation commands...[/]")
    script = generate_commands(agent, description, platform)
    if script is None:
        console.print("[red]No response from the model.[/]")
        return None

    console.print("[blue]Automation commands:[/]")
    console.print(Text(script.raw.strip(), style="yellow"))

    if not script.commands:
        console.print("No valid commands found to execute")
        return None

    if not confirm("Do you want to execute these commands?", default=False, console=console):
        return None

    single_session = confirm(
        "Execute commands in a single session? (keeps directory changes, recommended)",
        default=True,
        console=console,
    )
    mode = ExecutionMode.SINGLE_SESSION if single_session else ExecutionMode.PER_COMMAND

    executor = executor or SessionExecutor(platform=platform, console=console)
    return executor.execute_batch(script.commands, mode, cwd=cwd)
