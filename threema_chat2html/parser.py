#!/usr/bin/env python3
"""Parse Threema ``messages.txt`` exports into rendered messages.

Every message starts with a header line::

    [2024-01-01, 10:00] Alice: Hello *world*!

Lines without such a header continue the previous message. This module
provides:
- split_lines / assemble_blocks: rebuild message boundaries
- parse_block: split a block into timestamp, sender and body
- extract_media_references: pull ``<filename>`` placeholders out of a body
- render_message: escape, style and embed media for one message
- parse_messages: the whole pass over an export
"""

import logging
import re
from typing import Iterable, Optional

from .files import FileIndex
from .html.media_formatters import resolve_media_reference
from .html.utils import apply_inline_styles, escape_html
from .models import (
    LogicalMessageBlock,
    MediaReference,
    ParsedMessage,
    ParseResult,
    SenderRegistry,
)
from .timings import ConversionTimings

logger = logging.getLogger(__name__)

HEADER_PATTERN = re.compile(
    r"\s*\[([0-9]{4}-[0-9]{2}-[0-9]{2},\s*[0-9]{2}:[0-9]{2})\]\s+([^:]*):\s*(.*)",
    re.DOTALL,
)
LINE_BREAK_PATTERN = re.compile(r"\r\n|\n|\r")
TRAILING_LINE_BREAKS_PATTERN = re.compile(r"(?:\r?\n|\r)+\Z")

# Stands in for an extracted placeholder until the body is escaped and styled.
# Bodies are tab-free once normalized, and neither escaping nor styling
# touches tabs.
MEDIA_MARKER = "\t"
# Greedy prefix: each match finds the right-most placeholder. Its text may
# contain markers of placeholders extracted before it.
MEDIA_PATTERN = re.compile(r"(.*)(<([^>]*)>)(.*)", re.DOTALL)


class NotAThreemaArchive(ValueError):
    """The messages file does not follow the Threema export format."""

    def __init__(self, line: str, line_number: int = 1):
        self.line = line
        self.line_number = line_number
        super().__init__(
            f"line {line_number} does not start with Threema timestamp; "
            f"not a Threema archive file? ({line})"
        )


def is_header_line(line: str) -> bool:
    """Check whether a physical line starts a new message."""
    return HEADER_PATTERN.fullmatch(line) is not None


def split_lines(text: str) -> list[str]:
    """Split text on any line ending after dropping trailing line breaks."""
    text = TRAILING_LINE_BREAKS_PATTERN.sub("", text)
    return LINE_BREAK_PATTERN.split(text)


def assemble_blocks(lines: Iterable[str]) -> list[LogicalMessageBlock]:
    """Group physical lines into messages.

    A header line opens a new block; any other line is appended to the open
    block. A non-header line before the first block is fatal.

    Raises:
        NotAThreemaArchive: If the first line is not a header line.
    """
    blocks: list[LogicalMessageBlock] = []
    current: Optional[LogicalMessageBlock] = None
    for line_number, line in enumerate(lines, 1):
        if is_header_line(line):
            current = LogicalMessageBlock(line_number=line_number, lines=[line])
            blocks.append(current)
        elif current is None:
            raise NotAThreemaArchive(line, line_number)
        else:
            current.lines.append(line)
    if not blocks:
        raise NotAThreemaArchive("", 1)
    return blocks


def parse_block(block: LogicalMessageBlock) -> ParsedMessage:
    """Split a block into timestamp, sender and tab-free body."""
    match = HEADER_PATTERN.fullmatch(block.text)
    if match is None:
        raise NotAThreemaArchive(block.lines[0], block.line_number)
    timestamp, sender, body = match.groups()
    return ParsedMessage(
        timestamp=timestamp,
        sender=re.sub(r"\s", "_", sender),
        body=body.replace("\t", " "),
        line_number=block.line_number,
    )


def extract_media_references(body: str) -> tuple[str, list[MediaReference]]:
    """Replace every ``<filename>`` in a body with a marker.

    Placeholders are taken from last to first. A placeholder that encloses
    markers of earlier ones (``<see <a.jpg>>``) takes those references as
    ``nested`` and leaves a single marker for itself.

    Returns:
        The marked body and the top-level references in order of position
    """
    references: list[MediaReference] = []
    while match := MEDIA_PATTERN.fullmatch(body):
        before, outer, inner, after = match.groups()
        start = before.count(MEDIA_MARKER)
        end = start + outer.count(MEDIA_MARKER)
        reference = MediaReference(
            outer=outer, inner=inner, nested=tuple(references[start:end])
        )
        references[start:end] = [reference]
        body = before + MEDIA_MARKER + after
    return body, references


def substitute_media_markers(body: str, fragments: list[str]) -> str:
    """Put one fragment in place of each marker, left to right."""
    parts = body.split(MEDIA_MARKER)
    if len(parts) != len(fragments) + 1:
        raise ValueError(
            f"Expected {len(fragments)} media markers, found {len(parts) - 1}"
        )
    result = [parts[0]]
    for fragment, part in zip(fragments, parts[1:]):
        result.append(fragment)
        result.append(part)
    return "".join(result)


def render_media_reference(reference: MediaReference, file_index: FileIndex) -> str:
    """Resolve a reference to its HTML fragment.

    A placeholder enclosing other placeholders never names a file; it is kept
    as escaped text with the fragments of the enclosed ones in place.
    """
    if not reference.nested:
        return resolve_media_reference(reference, file_index)
    return substitute_media_markers(
        escape_html(reference.outer),
        [render_media_reference(child, file_index) for child in reference.nested],
    )


def render_message(message: ParsedMessage, file_index: FileIndex) -> str:
    """Render a parsed message to its ``<div>`` fragment.

    Fills in ``message.media_references`` and ``message.rendered_html``.
    Styling never reaches into placeholder text.
    """
    body, references = extract_media_references(message.body)
    message.media_references = references

    body = escape_html(body)
    body = apply_inline_styles(body)

    fragments = [render_media_reference(ref, file_index) for ref in references]
    body = substitute_media_markers(body, fragments)
    body = body.replace("\n", "<br>")

    sender = escape_html(message.sender)
    message.rendered_html = (
        f'<div class="{sender}"><span class="prefix">'
        f"{escape_html(message.timestamp)} ({sender}):</span> {body}</div>"
    )
    return message.rendered_html


class MessageParser:
    """Turns the text of a messages file into rendered messages.

    The file index resolves media placeholders; the sender registry collects
    senders in order of first appearance for color assignment.
    """

    def __init__(
        self, file_index: FileIndex, timings: Optional[ConversionTimings] = None
    ):
        self.file_index = file_index
        self.senders = SenderRegistry()
        self.timings = timings or ConversionTimings(enabled=False)

    def parse(self, text: str) -> ParseResult:
        blocks = assemble_blocks(split_lines(text))
        messages: list[ParsedMessage] = []
        for block in blocks:
            message = parse_block(block)
            with self.timings.message(block.line_number):
                render_message(message, self.file_index)
            self.senders.register(message.sender)
            messages.append(message)
            if message.media_references:
                logger.debug(
                    "Line %d: %d media references",
                    block.line_number,
                    len(message.media_references),
                )
        logger.info(
            "Parsed %d messages from %d senders", len(messages), len(self.senders)
        )
        return ParseResult(messages=messages, senders=self.senders)


def parse_messages(
    text: str, file_index: FileIndex, timings: Optional[ConversionTimings] = None
) -> ParseResult:
    """Parse and render a whole export.

    Raises:
        NotAThreemaArchive: If the text does not start with a message header.
    """
    return MessageParser(file_index, timings).parse(text)
