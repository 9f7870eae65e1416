"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from threema_chat2html.files import FileIndex

SAMPLE_MESSAGES = """\
[2024-01-01, 10:00] Alice: Hello *world*!
[2024-01-01, 10:01] Bob: See <photo.jpg>
and this one
[2024-01-02, 09:30] Me: Voice note <voice.mp3>
[2024-01-03, 18:45] Alice: _Bye_ ~now~
"""


@pytest.fixture
def archive_dir(tmp_path: Path) -> Path:
    """Create an unpacked Threema archive with a messages file and media."""
    archive = tmp_path / "archive"
    archive.mkdir()
    (archive / "messages.txt").write_text(SAMPLE_MESSAGES, encoding="utf-8")
    (archive / "photo.jpg").write_bytes(b"\xff\xd8\xff")
    (archive / "voice.mp3").write_bytes(b"ID3")
    return archive


@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """A folder with one file of each media kind, one of them nested."""
    media = tmp_path / "media"
    (media / "sub").mkdir(parents=True)
    (media / "photo.jpg").write_bytes(b"")
    (media / "song.mp3").write_bytes(b"")
    (media / "sub" / "clip.mp4").write_bytes(b"")
    (media / "report.pdf").write_bytes(b"")
    (media / "my photo #1.png").write_bytes(b"")
    return media


@pytest.fixture
def media_index(media_dir: Path) -> FileIndex:
    return FileIndex.build(media_dir)


@pytest.fixture
def empty_index() -> FileIndex:
    return FileIndex([])
