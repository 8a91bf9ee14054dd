from dataclasses import dataclass, field
from typing import List


USER = "User"
ASSISTANT = "Assistant"


@dataclass(frozen=True)
class Turn:
    role: str
    text: str

    def render(self) -> str:
        return f"{self.role}: {self.text}"


@dataclass
class Conversation:
    """The transcript of a REPL session, sent in full with every query.

    Turns are only ever appended, in the order they happened. Nothing is
    truncated and nothing is written to disk.
    """

    turns: List[Turn] = field(default_factory=list)

    def add_user(self, text: str):
        self.turns.append(Turn(USER, text))

    def add_assistant(self, text: str):
        self.turns.append(Turn(ASSISTANT, text))

    def as_prompt(self) -> str:
        return "\n".join(turn.render() for turn in self.turns)

    def __len__(self) -> int:
        return len(self.turns)
