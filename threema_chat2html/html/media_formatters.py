"""HTML fragments for media files referenced from chat messages.

Threema writes attachments into the message text as ``<filename>``. Files
that exist in the archive are embedded by media type; anything else stays
visible as escaped text.
"""

from typing import Optional
from urllib.parse import quote

from ..files import FileIndex, FileIndexEntry
from ..models import MediaReference
from .utils import escape_html

# Characters encodeURIComponent() leaves alone besides letters, digits and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


def encode_uri_component(text: str) -> str:
    """Percent-encode a filename for use in ``src``/``href`` attributes."""
    return quote(text, safe=_URI_COMPONENT_SAFE)


def format_image(filename: str) -> str:
    return (
        f'<br><img src="{encode_uri_component(filename)}" '
        f'alt="{escape_html(filename)}">'
    )


def format_audio(filename: str, media_type: str) -> str:
    return (
        f'<audio controls><source src="{encode_uri_component(filename)}" '
        f'type="{media_type}">'
        "Your browser does not support the audio tag.</audio>"
    )


def format_video(filename: str, media_type: str) -> str:
    return (
        f'<br><video controls><source src="{encode_uri_component(filename)}" '
        f'type="{media_type}">'
        "Your browser does not support the video tag.</video>"
    )


def format_link(filename: str) -> str:
    return (
        f'<a href="{encode_uri_component(filename)}" target="_blank">'
        f"{escape_html(filename)}</a>"
    )


def format_media_entry(filename: str, entry: FileIndexEntry) -> str:
    """Render an existing file according to its media type.

    Args:
        filename: The name as written in the message (used for src and text)
        entry: The file found in the index

    Returns:
        An ``<img>``, ``<audio>``, ``<video>`` or ``<a>`` fragment
    """
    media_type: Optional[str] = entry.media_type
    if media_type:
        major = media_type.split("/", 1)[0].lower()
        if major == "image":
            return format_image(filename)
        if major == "audio":
            return format_audio(filename, media_type)
        if major == "video":
            return format_video(filename, media_type)
    return format_link(filename)


def resolve_media_reference(reference: MediaReference, file_index: FileIndex) -> str:
    """Turn a ``<filename>`` reference into its HTML fragment.

    Unknown files are rendered as the escaped original text, brackets
    included, never as a broken tag.
    """
    entry = file_index.lookup(reference.inner)
    if entry is None:
        return escape_html(reference.outer)
    return format_media_entry(reference.inner, entry)
