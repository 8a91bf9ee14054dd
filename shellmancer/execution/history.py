import logging
import os

try:
    import readline
except ImportError:
    # Not shipped with Windows Python
    readline = None

from typing import List, Optional


LOGGER = logging.getLogger(__name__)

MAX_HISTORY_SIZE = 1000


def default_history_path() -> str:
    return os.path.join(os.path.expanduser("~"), ".shellmancer-history")


class CommandHistory:
    """
    Lines typed into the REPL, newest last, mirrored into readline so the
    arrow keys can recall them.

    The history file is only a safety net for sessions that end abruptly: lines
    are appended as they are entered and the file is removed on a clean exit.
    Any I/O problem with the file is logged and otherwise ignored.
    """

    def __init__(self, path: Optional[str] = None, max_size: int = MAX_HISTORY_SIZE):
        self.path = path or default_history_path()
        self.max_size = max_size
        self.entries: List[str] = []

    def load(self) -> List[str]:
        if not os.path.exists(self.path):
            self.entries = []
            return self.entries

        try:
            with open(self.path, "r", encoding="utf-8", errors="replace") as history_file:
                lines = [line.rstrip("\n") for line in history_file]
        except OSError as e:
            LOGGER.warning("Could not load history: %s", e)
            self.entries = []
            return self.entries

        self.entries = [line for line in lines if line.strip()][-self.max_size:]
        return self.entries

    def append(self, line: str) -> bool:
        """Records a line unless it repeats the previous one. Returns True if recorded."""
        if self.entries and self.entries[-1] == line:
            return False

        self.entries.append(line)
        if len(self.entries) > self.max_size:
            del self.entries[: len(self.entries) - self.max_size]

        try:
            with open(self.path, "a", encoding="utf-8") as history_file:
                history_file.write(line + "\n")
        except OSError as e:
            LOGGER.warning("Could not save history: %s", e)
        return True

    def delete(self):
        try:
            if os.path.exists(self.path):
                os.remove(self.path)
        except OSError as e:
            LOGGER.warning("Could not delete history file: %s", e)

    def attach_to_readline(self):
        if readline is None:
            return
        readline.clear_history()
        readline.set_history_length(self.max_size)
        for entry in self.entries:
            readline.add_history(entry)

    @staticmethod
    def collapse_readline_duplicate():
        if readline is None:
            return
        # input() adds every line to readline on its own; undo exact repeats.
        length = readline.get_current_history_length()
        if length < 2:
            return
        if readline.get_history_item(length) == readline.get_history_item(length - 1):
            readline.remove_history_item(length - 1)
