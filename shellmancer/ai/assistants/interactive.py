import enum
import errno
import os

from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.text import Text

from ...config import Config
from ...execution import (
    Classification,
    CommandHistory,
    Route,
    SessionExecutor,
    classify,
    command_exists,
    current_platform,
)
from ...execution.platforms import CommandProbe
from ..agent import Agent
from ..conversation import Conversation
from . import automate as automation
from .system_info import system_info


SYSTEM_PROMPT = """
You are a general-purpose AI assistant running in a command-line environment.
You can help with a wide range of tasks, from general knowledge and writing to coding
and troubleshooting, and you are especially skilled in shell scripting, Unix-based
systems and command-line workflows.

You receive the whole conversation so far as lines prefixed with "User:" and
"Assistant:". Answer the last "User:" line, using the earlier lines as context.
Do not prefix your answer with "Assistant:".

Be concise, clear, and helpful. Use Markdown when it makes the answer easier to read.
"""

PROMPT = "[green]shellmancer> [/]"


class ShellState(enum.Enum):
    READING = "reading"
    DISPATCHING = "dispatching"
    AWAITING_MODEL = "awaiting-model"
    AWAITING_CONFIRMATION = "awaiting-confirmation"
    TERMINATED = "terminated"


class InteractiveShell:
    """
    The read-eval-print loop: built-in directives, OS commands and free-form
    questions for the model, one at a time.

    The session owns its current directory. `cd` changes `self.cwd` and every
    command spawned afterwards runs there; the directory of the Python process
    itself never changes.
    """

    def __init__(
        self,
        config: Config,
        agent: Optional[Agent] = None,
        automation_agent: Optional[Agent] = None,
        executor: Optional[SessionExecutor] = None,
        history: Optional[CommandHistory] = None,
        probe: CommandProbe = command_exists,
        console: Optional[Console] = None,
        cwd: Optional[str] = None,
        platform: Optional[str] = None,
    ):
        self.config = config
        self.console = console or Console()
        self.platform = platform or current_platform()
        self.agent = agent or Agent(config, SYSTEM_PROMPT)
        self.automation_agent = automation_agent or Agent(
            config, automation.SYSTEM_PROMPT, llm=self.agent.llm
        )
        self.executor = executor or SessionExecutor(platform=self.platform, console=self.console)
        self.history = history if history is not None else CommandHistory()
        self.probe = probe
        self.cwd = os.path.abspath(cwd or os.getcwd())
        self.conversation = Conversation()
        self.state = ShellState.READING

        self._handlers = {
            Route.LIST_FILES: self._list_files,
            Route.CHANGE_DIRECTORY: self._change_directory,
            Route.AUTOMATE: self._automate,
            Route.SYSTEM_INFO: self._system_info,
            Route.OS_COMMAND: self._run_os_command,
            Route.QUERY: self._ask_model,
        }

    def run(self) -> int:
        self.console.print(
            "[bright_blue]Entering interactive shell mode. Type 'exit' to quit.[/]\n"
        )
        self.history.load()
        self.history.attach_to_readline()

        try:
            while self.state is not ShellState.TERMINATED:
                try:
                    line = self._read_line()
                except EOFError:
                    break
                if not self.handle_line(line):
                    break
        except KeyboardInterrupt:
            self.console.print("\n[red]shellmancer interrupted, exiting...[/]")

        self._terminate()
        return 0

    def handle_line(self, line: str) -> bool:
        """Processes one line of input. Returns False once the session should end."""
        line = line.strip()
        if not line:
            return True

        self.state = ShellState.DISPATCHING
        classification = classify(line, self.probe, self.cwd)
        if classification.route is Route.EXIT:
            self.state = ShellState.TERMINATED
            return False

        self.history.append(line)
        self._dispatch(classification)
        self.state = ShellState.READING
        return True

    def _dispatch(self, classification: Classification):
        handler = self._handlers[classification.route]
        handler(classification.argument)

    def _read_line(self) -> str:
        self.state = ShellState.READING
        line = self.console.input(PROMPT)
        self.history.collapse_readline_duplicate()
        return line

    def _terminate(self):
        self.history.delete()
        self.state = ShellState.TERMINATED
        self.console.print("[yellow]Exiting shellmancer interactive mode...[/]")

    def _resolve(self, path: str) -> str:
        return os.path.abspath(os.path.join(self.cwd, os.path.expanduser(path)))

    def _list_files(self, path: str):
        directory = self._resolve(path) if path else self.cwd
        try:
            entries = sorted(os.listdir(directory))
        except OSError as e:
            message = e.strerror or str(e)
            self.console.print(Text(f"Error listing files in {directory}: {message}", style="red"))
            return

        self.console.print(Text(f"Files in {directory}:", style="cyan"))
        for entry in entries:
            self.console.print(Text(entry, style="cyan"))

    def _change_directory(self, path: str):
        target = self._resolve(path) if path else os.path.expanduser("~")

        error = None
        if not os.path.exists(target):
            error = errno.ENOENT
        elif not os.path.isdir(target):
            error = errno.ENOTDIR
        elif not os.access(target, os.X_OK):
            error = errno.EACCES

        if error is not None:
            self.console.print(
                Text(f"Error changing directory: {os.strerror(error)}: '{target}'", style="red")
            )
            return

        self.cwd = target
        self.console.print(Text(f"Changed directory to {self.cwd}", style="green"))

    def _automate(self, description: str):
        self.state = ShellState.AWAITING_CONFIRMATION
        automation.automate(
            self.config,
            description,
            cwd=self.cwd,
            agent=self.automation_agent,
            executor=self.executor,
            console=self.console,
            platform=self.platform,
        )

    def _system_info(self, _argument: str):
        system_info(self.console)

    def _run_os_command(self, line: str):
        outcome = self.executor.run_command(line, cwd=self.cwd)
        if outcome.spawn_failed:
            return
        if outcome.stderr.strip():
            self.console.print(Text(outcome.stderr.rstrip(), style="red"))
        elif not outcome.succeeded:
            self.console.print(Text(outcome.error or "", style="red"))

    def _ask_model(self, line: str):
        self.conversation.add_user(line)

        self.state = ShellState.AWAITING_MODEL
        with self.console.status("Thinking..."):
            reply = self.agent.ask(self.conversation.as_prompt())

        if reply is None:
            self.console.print("[red]No response from the model.[/]")
            return

        self.console.print("[bold yellow]Assistant:[/]")
        self.console.print(Markdown(reply))
        self.conversation.add_assistant(reply)


def interactive_shell(config: Config) -> int:
    """Starts the interactive shell in the current directory."""
    return InteractiveShell(config).run()
