import re

from typing import Iterable, List, Optional, Pattern, Sequence, Union


Matcher = Union[str, Pattern]

# Diagnostic metadata PowerShell appends to every error record.
DEFAULT_NOISE_MARKERS: Sequence[Matcher] = (
    "CategoryInfo",
    "FullyQualifiedErrorId",
    "At line:",
)


class StderrFilter:
    """
    Drops platform-diagnostic noise from stderr before it is shown to the user.

    Each marker is either a plain substring or a compiled regular expression;
    a line is noise when any marker matches it. Blank lines are always noise.
    """

    def __init__(self, markers: Iterable[Matcher] = DEFAULT_NOISE_MARKERS):
        self.markers = list(markers)

    def _matches(self, marker: Matcher, line: str) -> bool:
        if isinstance(marker, re.Pattern):
            return marker.search(line) is not None
        return marker in line

    def is_noise(self, line: str) -> bool:
        if not line.strip():
            return True
        return any(self._matches(marker, line) for marker in self.markers)

    def relevant_lines(self, text: str) -> List[str]:
        return [line for line in text.splitlines() if not self.is_noise(line)]

    def first_relevant(self, text: str) -> Optional[str]:
        lines = self.relevant_lines(text)
        return lines[0].strip() if lines else None

    def describe_failure(self, stderr: str, returncode: Optional[int]) -> str:
        """
        Picks the most useful line to show for a failed command: the first
        non-noise stderr line, then the first raw stderr line, then a generic
        exit-code message.
        """
        relevant = self.first_relevant(stderr)
        if relevant:
            return relevant

        raw_lines = [line for line in stderr.splitlines() if line.strip()]
        if raw_lines:
            return raw_lines[0].strip()

        return f"Command exited with code {returncode}"
