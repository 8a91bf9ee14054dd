import enum
import logging
import queue
import subprocess
import threading

from dataclasses import dataclass, field
from typing import Callable, Iterator, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.text import Text

from .noise import StderrFilter
from .platforms import current_platform, shell_argv


LOGGER = logging.getLogger(__name__)

STDOUT = "stdout"
STDERR = "stderr"

SESSION_SEPARATOR = "; "
TERMINATE_GRACE_PERIOD = 5.0

ConfirmContinue = Callable[[str], bool]


class ExecutionMode(enum.Enum):
    SINGLE_SESSION = "single-session"
    PER_COMMAND = "per-command"


@dataclass(frozen=True)
class OutputChunk:
    stream: str
    text: str


@dataclass(frozen=True)
class CommandOutcome:
    """What happened to one command, or to a whole script in session mode."""

    command: str
    returncode: Optional[int]
    error: Optional[str] = None
    stderr: str = ""
    spawn_failed: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.spawn_failed and self.returncode == 0


@dataclass
class BatchOutcome:
    mode: ExecutionMode
    outcomes: List[CommandOutcome] = field(default_factory=list)
    stopped_early: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.stopped_early and all(o.succeeded for o in self.outcomes)

    @property
    def completed(self) -> bool:
        """True when every command got its chance to run, even if some failed."""
        return not self.stopped_early and not any(o.spawn_failed for o in self.outcomes)


def join_session_script(commands: Sequence[str]) -> str:
    # ";" keeps going after a failing command, unlike "&&"
    return SESSION_SEPARATOR.join(commands)


def confirm(message: str, default: bool = True, console: Optional[Console] = None) -> bool:
    """Asks a yes/no question. A closed input stream counts as 'no'."""
    try:
        return Confirm.ask(message, default=default, console=console)
    except EOFError:
        return False


def _terminate(process: subprocess.Popen):
    if process.poll() is not None:
        return
    LOGGER.debug("Terminating child process %s", process.pid)
    process.terminate()
    try:
        process.wait(timeout=TERMINATE_GRACE_PERIOD)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()


class StreamingProcess:
    """
    A child process whose stdout and stderr are delivered as a single ordered
    sequence of OutputChunk lines while it runs.

    The sequence can be consumed only once. Iteration ends when both pipes are
    closed; `wait()` then returns the exit code.
    """

    def __init__(self, argv: List[str], cwd: Optional[str] = None):
        self.argv = argv
        # stdin stays attached to the terminal so prompts inside the script work
        self.process = subprocess.Popen(
            argv,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            bufsize=1,
        )
        self._chunks: "queue.Queue[Optional[OutputChunk]]" = queue.Queue()
        self._consumed = False
        self._readers = [
            threading.Thread(target=self._pump, args=(STDOUT, self.process.stdout), daemon=True),
            threading.Thread(target=self._pump, args=(STDERR, self.process.stderr), daemon=True),
        ]
        for reader in self._readers:
            reader.start()

    def _pump(self, stream: str, pipe):
        try:
            for line in iter(pipe.readline, ""):
                self._chunks.put(OutputChunk(stream, line))
        finally:
            pipe.close()
            self._chunks.put(None)

    def __iter__(self) -> Iterator[OutputChunk]:
        if self._consumed:
            raise RuntimeError("Process output can only be consumed once.")
        self._consumed = True

        open_streams = len(self._readers)
        while open_streams:
            chunk = self._chunks.get()
            if chunk is None:
                open_streams -= 1
                continue
            yield chunk

    def wait(self) -> int:
        returncode = self.process.wait()
        for reader in self._readers:
            reader.join()
        return returncode

    def terminate(self):
        _terminate(self.process)


class SessionExecutor:
    """
    Runs batches of shell commands, strictly one process at a time.

    In single-session mode the whole batch is one script in one shell, so a
    `cd` early in the batch applies to everything after it. In per-command mode
    each command gets its own shell and the user decides after every failure
    whether the rest of the batch should still run.
    """

    def __init__(
        self,
        platform: Optional[str] = None,
        console: Optional[Console] = None,
        stderr_filter: Optional[StderrFilter] = None,
        confirm_continue: Optional[ConfirmContinue] = None,
        shell: Optional[str] = None,
    ):
        self.platform = platform or current_platform()
        self.console = console or Console()
        self.stderr_filter = stderr_filter or StderrFilter()
        self.confirm_continue = confirm_continue or (
            lambda message: confirm(message, default=True, console=self.console)
        )
        self.shell = shell

    def execute_batch(
        self, commands: Sequence[str], mode: ExecutionMode, cwd: Optional[str] = None
    ) -> BatchOutcome:
        if mode is ExecutionMode.SINGLE_SESSION:
            return BatchOutcome(mode, [self.run_session(commands, cwd=cwd)])
        return self.run_each(commands, cwd=cwd)

    def run_session(self, commands: Sequence[str], cwd: Optional[str] = None) -> CommandOutcome:
        script = join_session_script(commands)
        argv = shell_argv(script, self.platform, self.shell)

        self.console.print("\n[blue]Executing all commands in a single session...[/]\n")
        for index, command in enumerate(commands, start=1):
            self.console.print(f"[cyan]{index}. {escape(command)}[/]")
        self.console.print()

        LOGGER.debug("Spawning session shell: %s (cwd=%s)", argv[0], cwd)
        try:
            process = StreamingProcess(argv, cwd=cwd)
        except OSError as e:
            return self._spawn_failure(script, argv[0], e)

        stderr_lines = []
        try:
            for chunk in process:
                if chunk.stream == STDOUT:
                    self.console.out(chunk.text, end="", highlight=False)
                    continue
                stderr_lines.append(chunk.text)
                if not self.stderr_filter.is_noise(chunk.text):
                    self.console.print(Text(chunk.text.rstrip("\n"), style="red"))
            returncode = process.wait()
        except KeyboardInterrupt:
            process.terminate()
            raise

        stderr = "".join(stderr_lines)
        self.console.print()
        if returncode != 0:
            # Every command still ran, so this is a warning rather than a failure.
            hint = self.stderr_filter.first_relevant(stderr) or (
                f"Some commands may have failed (exit code: {returncode})"
            )
            self.console.print("[yellow]⚠ Script execution completed with some errors[/]")
            self.console.print(Text(f"  {hint}\n", style="bright_black"))
            return CommandOutcome(script, returncode, error=hint, stderr=stderr)

        self.console.print("[green]✓ All commands executed successfully[/]\n")
        return CommandOutcome(script, returncode, stderr=stderr)

    def run_command(self, command: str, cwd: Optional[str] = None) -> CommandOutcome:
        """
        Runs one command in its own shell with the terminal attached to stdin
        and stdout. stderr is captured so failures can be summarized.
        """
        argv = shell_argv(command, self.platform, self.shell)
        LOGGER.debug("Spawning %s for %r (cwd=%s)", argv[0], command, cwd)
        try:
            process = subprocess.Popen(
                argv, cwd=cwd, stderr=subprocess.PIPE, text=True, errors="replace"
            )
        except OSError as e:
            return self._spawn_failure(command, argv[0], e)

        try:
            _, stderr = process.communicate()
        except KeyboardInterrupt:
            _terminate(process)
            raise

        stderr = stderr or ""
        if process.returncode != 0:
            error = self.stderr_filter.describe_failure(stderr, process.returncode)
            return CommandOutcome(command, process.returncode, error=error, stderr=stderr)
        return CommandOutcome(command, process.returncode, stderr=stderr)

    def run_each(self, commands: Sequence[str], cwd: Optional[str] = None) -> BatchOutcome:
        batch = BatchOutcome(ExecutionMode.PER_COMMAND)
        for index, command in enumerate(commands):
            self.console.print(Text(f"Executing: {command}", style="cyan"))
            outcome = self.run_command(command, cwd=cwd)
            batch.outcomes.append(outcome)

            if outcome.succeeded:
                self.console.print("[green]✓ Command executed successfully[/]\n")
                continue

            self.console.print(Text(f"✗ Command failed: {command}", style="red"))
            self.console.print(Text(f"  Error: {outcome.error}\n", style="bright_black"))

            if index == len(commands) - 1:
                break
            if not self.confirm_continue("Do you want to continue executing the next commands?"):
                self.console.print("[yellow]Stopping execution...[/]")
                batch.stopped_early = True
                break

        return batch

    def _spawn_failure(self, command: str, executable: str, error: OSError) -> CommandOutcome:
        message = f"Could not start '{executable}': {error}"
        LOGGER.debug("Spawn failure for %r: %s", command, error)
        self.console.print(Text(message, style="red"))
        return CommandOutcome(command, None, error=message, spawn_failed=True)
