"""Data structures for parsed Threema chat exports."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# The sender name Threema uses for messages written by the archive owner
SELF_SENDER = "Me"

TIMESTAMP_FORMAT = "%Y-%m-%d, %H:%M"


@dataclass
class LogicalMessageBlock:
    """One message as it appears in the export: a header line plus continuations."""

    line_number: int  # 1-based line number of the header line
    lines: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class MediaReference:
    """A ``<filename>`` placeholder found in a message body.

    ``outer`` is the placeholder including its angle brackets, ``inner`` the
    filename between them. A placeholder written around earlier ones
    (``<see <a.jpg>>``) holds their markers in its text and the references
    themselves in ``nested``.
    """

    outer: str
    inner: str
    nested: tuple["MediaReference", ...] = ()


@dataclass
class ParsedMessage:
    """A single chat message, split into fields and rendered to HTML."""

    timestamp: str  # "YYYY-MM-DD, HH:MM", verbatim from the export
    sender: str  # whitespace replaced by underscores
    body: str
    media_references: list[MediaReference] = field(default_factory=list)
    rendered_html: str = ""
    line_number: int = 0

    def get_datetime(self) -> Optional[datetime]:
        """Parse the timestamp, or None if it is not a valid date."""
        normalized = re.sub(r",\s*", ", ", self.timestamp)
        try:
            return datetime.strptime(normalized, TIMESTAMP_FORMAT)
        except ValueError:
            return None


class SenderRegistry:
    """Senders in order of first appearance.

    "Me" is always registered first so the archive owner gets the first
    palette color, even in chats without own messages.
    """

    def __init__(self) -> None:
        self._senders: list[str] = [SELF_SENDER]

    def register(self, sender: str) -> int:
        """Add a sender if it is new; return its appearance index."""
        if sender not in self._senders:
            self._senders.append(sender)
        return self._senders.index(sender)

    def index(self, sender: str) -> int:
        return self._senders.index(sender)

    @property
    def senders(self) -> list[str]:
        return list(self._senders)

    def __contains__(self, sender: object) -> bool:
        return sender in self._senders

    def __len__(self) -> int:
        return len(self._senders)


@dataclass
class ParseResult:
    """All messages of an export plus the senders seen while parsing."""

    messages: list[ParsedMessage]
    senders: SenderRegistry


@dataclass
class Document:
    """Everything needed to write the final HTML file."""

    fragments: list[str]
    sender_colors: dict[str, str]
