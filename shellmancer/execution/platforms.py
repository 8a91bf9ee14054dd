import os
import shutil

from typing import Callable, List, Optional


POSIX = "posix"
WINDOWS = "windows"

# (token, cwd) -> True when the token names an executable. Paths are
# relative to cwd, bare names are looked up on the search path.
CommandProbe = Callable[[str, Optional[str]], bool]


def current_platform() -> str:
    return WINDOWS if os.name == "nt" else POSIX


def default_shell(platform: str) -> str:
    """The shell used to run generated commands on the given platform."""
    if platform == WINDOWS:
        return "powershell.exe"
    return os.environ.get("SHELL") or shutil.which("bash") or "/bin/sh"


def shell_argv(script: str, platform: str, shell: Optional[str] = None) -> List[str]:
    """
    Builds the argument vector that hands `script` to a shell as one argument,
    so the body is never re-split or re-quoted on its way to the shell.
    """
    executable = shell or default_shell(platform)
    if platform == WINDOWS:
        return [executable, "-NoProfile", "-Command", script]
    return [executable, "-c", script]


def _is_path(token: str) -> bool:
    return os.sep in token or bool(os.altsep and os.altsep in token)


def command_exists(token: str, cwd: Optional[str] = None) -> bool:
    """
    Answers what `which` (or `where` on Windows) would if run from `cwd`,
    without spawning it.
    """
    if not token:
        return False
    if _is_path(token):
        path = os.path.join(cwd or os.getcwd(), os.path.expanduser(token))
        return os.path.isfile(path) and os.access(path, os.X_OK)
    return shutil.which(token) is not None
