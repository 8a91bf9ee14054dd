import enum

from dataclasses import dataclass
from typing import Optional

from .platforms import CommandProbe, command_exists


class Route(enum.Enum):
    EXIT = "exit"
    LIST_FILES = "list files"
    CHANGE_DIRECTORY = "cd"
    AUTOMATE = "automate"
    SYSTEM_INFO = "system-info"
    OS_COMMAND = "os-command"
    QUERY = "query"


@dataclass(frozen=True)
class Classification:
    route: Route
    argument: str = ""


# Keyword -> route. Matched case-insensitively, longest keyword first.
DIRECTIVES = {
    "list files": Route.LIST_FILES,
    "cd": Route.CHANGE_DIRECTORY,
    "automate": Route.AUTOMATE,
    "system-info": Route.SYSTEM_INFO,
}


def _match_directive(line: str) -> Optional[Classification]:
    lowered = line.lower()
    for keyword in sorted(DIRECTIVES, key=len, reverse=True):
        if not lowered.startswith(keyword):
            continue
        rest = line[len(keyword):]
        # "cdrom" or "automated" are not directives
        if rest and not rest[0].isspace():
            continue
        return Classification(DIRECTIVES[keyword], rest.strip())
    return None


def classify(
    line: str, probe: CommandProbe = command_exists, cwd: Optional[str] = None
) -> Classification:
    """
    Decides what a REPL line is, in order: the `exit` control word, a built-in
    directive, an executable (resolved from `cwd` when given as a path), and
    finally free text for the model.
    """
    line = line.strip()
    if line.lower() == "exit":
        return Classification(Route.EXIT)

    directive = _match_directive(line)
    if directive is not None:
        return directive

    first_token = line.split()[0] if line else ""
    if probe(first_token, cwd):
        return Classification(Route.OS_COMMAND, line)

    return Classification(Route.QUERY, line)
