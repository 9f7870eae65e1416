#!/usr/bin/env python3
"""Convert an unpacked Threema chat archive to a single HTML file."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import dateparser

from .config import ChatConfig
from .files import FileIndex, FileIndexEntry, FileSystemError
from .models import ParsedMessage
from .parser import parse_messages
from .renderer import build_document, generate_html
from .timings import ConversionTimings

logger = logging.getLogger(__name__)

OUTPUT_PREFIX = "threema"


def get_output_path(
    directory: Path, prefix: str = OUTPUT_PREFIX, now: Optional[datetime] = None
) -> Path:
    """Build a fresh output file name, e.g. ``threema-2024-01-01-10-00-00-000.html``."""
    now = now or datetime.now()
    stamp = now.strftime("%Y-%m-%d-%H-%M-%S-") + f"{now.microsecond // 1000:03d}"
    return directory / f"{prefix}-{stamp}.html"


def _parse_date_bound(value: str, label: str) -> datetime:
    dateparser_settings: Any = {"RETURN_AS_TIMEZONE_AWARE": False}
    parsed = dateparser.parse(value, settings=dateparser_settings)
    if not parsed:
        raise ValueError(f"Could not parse {label}: {value}")
    return parsed


def filter_messages_by_date(
    messages: list[ParsedMessage], from_date: Optional[str], to_date: Optional[str]
) -> list[ParsedMessage]:
    """Keep messages within a date range.

    Threema timestamps carry no timezone, so both bounds are compared as
    naive local times. Relative day names ("today", "yesterday", "N days
    ago") cover the whole day.
    """
    if not from_date and not to_date:
        return messages

    from_dt = None
    to_dt = None
    if from_date:
        from_dt = _parse_date_bound(from_date, "from-date")
        if from_date in ["today", "yesterday"] or "days ago" in from_date:
            from_dt = from_dt.replace(hour=0, minute=0, second=0, microsecond=0)
    if to_date:
        to_dt = _parse_date_bound(to_date, "to-date")
        if to_date in ["today", "yesterday"] or "days ago" in to_date:
            to_dt = to_dt.replace(hour=23, minute=59, second=59, microsecond=999999)

    filtered: list[ParsedMessage] = []
    for message in messages:
        message_dt = message.get_datetime()
        if message_dt is None:
            continue
        if from_dt and message_dt < from_dt:
            continue
        if to_dt and message_dt > to_dt:
            continue
        filtered.append(message)
    return filtered


def find_messages_file(file_index: FileIndex, filename: str) -> FileIndexEntry:
    """Look up the messages file in the archive, ignoring case.

    Raises:
        FileSystemError: If no file of that name exists below the directory.
    """
    entry = file_index.lookup(Path(filename.replace("\\", "/")).name)
    if entry is None:
        raise FileSystemError(f"Could not find file '{filename}'.")
    return entry


def read_messages_file(path: Path) -> str:
    """Read a messages file as UTF-8, tolerating a byte order mark."""
    try:
        return path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        raise FileSystemError(f"Could not read file '{path}': {e}") from e


def convert_chat_to_html(
    directory: Path,
    messages_filename: Optional[str] = None,
    output_path: Optional[Path] = None,
    config: Optional[ChatConfig] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    silent: bool = False,
    timings: Optional[ConversionTimings] = None,
) -> Path:
    """Convert the messages file in ``directory`` into an HTML file.

    Media files anywhere below ``directory`` are embedded by reference. The
    output file is written only after the whole document has been built.

    Args:
        directory: Folder holding the unpacked archive
        messages_filename: Name of the messages file (default from config)
        output_path: Where to write the HTML (default: a new timestamped
            file in ``directory``)
        config: Output configuration (default: built-in configuration)
        from_date: Optional lower date bound for messages
        to_date: Optional upper date bound for messages
        silent: Suppress progress output
        timings: Collects phase and per-message durations (default: enabled
            by THREEMA_CHAT2HTML_DEBUG_TIMING, reported at the end)

    Returns:
        Path of the written HTML file

    Raises:
        FileSystemError: If the directory or the messages file is unusable.
        NotAThreemaArchive: If the messages file is not a Threema export.
    """
    config = config or ChatConfig()
    messages_filename = messages_filename or config.messages_filename
    timings = timings or ConversionTimings()

    if not directory.is_dir():
        raise FileSystemError(f"Path '{directory}' not found.")

    if not silent:
        print(f"Reading all files from path '{directory}' ...")
    with timings.phase("Indexing files"):
        file_index = FileIndex.build(directory)
    if not len(file_index):
        raise FileSystemError(f"Could not find any file in '{directory}'.")

    if not silent:
        print(f"Looking for file '{messages_filename}' ...")
    messages_file = find_messages_file(file_index, messages_filename)
    text = read_messages_file(messages_file.full_path)

    with timings.phase("Parsing messages"):
        result = parse_messages(text, file_index, timings)

    messages = filter_messages_by_date(result.messages, from_date, to_date)
    if len(messages) != len(result.messages):
        logger.info(
            "Kept %d of %d messages in date range", len(messages), len(result.messages)
        )

    with timings.phase("Rendering document"):
        html_content = generate_html(
            build_document(messages, result.senders, config), config
        )

    if output_path is None:
        output_path = get_output_path(directory)
    if not silent:
        print(f"Going to write file '{output_path}' ...")
    with timings.phase("Writing file"):
        try:
            output_path.write_text(html_content, encoding="utf-8")
        except OSError as e:
            raise FileSystemError(f"Could not write file '{output_path}': {e}") from e

    timings.report()
    return output_path
