"""Conversation transcript shown to the learner."""

from dataclasses import dataclass, field
from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class TranscriptLine:
    role: Role
    text: str
    pending: bool = False


@dataclass
class Transcript:
    """Ordered transcript lines plus the buffer of assistant text still streaming in.

    Assistant fragments accumulate in a single pending line until the stream completes.
    """

    lines: list[TranscriptLine] = field(default_factory=list)
    buffer: str = ""

    def add(self, role: Role, text: str) -> TranscriptLine:
        line = TranscriptLine(role=role, text=text)
        self.lines.append(line)
        return line

    @property
    def pending_line(self) -> TranscriptLine | None:
        return next((line for line in reversed(self.lines) if line.pending), None)

    def append_fragment(self, delta: str) -> TranscriptLine:
        """Grow the pending assistant line by one fragment."""
        self.buffer += delta
        line = self.pending_line
        if line is None:
            line = TranscriptLine(role=Role.ASSISTANT, text=self.buffer, pending=True)
            self.lines.append(line)
        else:
            line.text = self.buffer
        return line

    def complete_fragment(self) -> str | None:
        """Finalize the pending line and clear the buffer.

        Returns the finalized text, or None if nothing but whitespace was received.
        """
        text, self.buffer = self.buffer, ""
        line = self.pending_line
        if not text.strip():
            if line is not None:
                self.lines.remove(line)
            return None

        if line is None:
            self.add(Role.ASSISTANT, text)
        else:
            line.text = text
            line.pending = False
        return text

    def clear(self) -> None:
        self.lines.clear()
        self.buffer = ""


def format_remaining(seconds: int) -> str:
    """Format remaining quota, e.g. ``4m05s remaining``."""
    minutes, secs = divmod(max(seconds, 0), 60)
    return f"{minutes}m{secs:02d}s remaining"
