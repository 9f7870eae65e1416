"""HTML escaping and inline text styles for chat messages.

Threema marks up text with single-character delimiters:
- *bold*
- _italics_
- ~strikethrough~

Each style is applied to already escaped text, so the produced ``<span>``
tags are the only markup in a message body besides media fragments.
"""

import functools
import re
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

HTML_ESCAPE_MAP = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
    "/": "&#x2F;",
    "`": "&#x60;",
    "=": "&#x3D;",
}
_HTML_ESCAPE_PATTERN = re.compile("[" + re.escape("".join(HTML_ESCAPE_MAP)) + "]")

# (delimiter, css class) in the order they are applied
INLINE_STYLES: list[tuple[str, str]] = [
    ("*", "bold"),
    ("_", "italics"),
    ("~", "strikethrough"),
]


def escape_html(text: str) -> str:
    """Replace reserved HTML characters with entities.

    Tabs and newlines are left alone; the message parser relies on that.
    """
    if not text:
        return text
    return _HTML_ESCAPE_PATTERN.sub(lambda m: HTML_ESCAPE_MAP[m.group()], text)


@functools.lru_cache(maxsize=None)
def _style_pattern(delimiter: str) -> re.Pattern[str]:
    d = re.escape(delimiter)
    return re.compile(f"{d}([^{d}]*){d}")


def apply_style(text: str, delimiter: str, css_class: str) -> str:
    """Wrap every ``delimiter``-bounded span in ``<span class="css_class">``.

    Replaces the first pair, then scans again from the start until no pair
    is left. An unmatched delimiter stays in the text.
    """
    pattern = _style_pattern(delimiter)
    while match := pattern.search(text):
        text = (
            text[: match.start()]
            + f'<span class="{css_class}">{match.group(1)}</span>'
            + text[match.end() :]
        )
    return text


def apply_inline_styles(text: str) -> str:
    """Apply bold, then italics, then strikethrough."""
    for delimiter, css_class in INLINE_STYLES:
        text = apply_style(text, delimiter, css_class)
    return text


def css_identifier(token: str) -> str:
    """Escape a class name for use in a CSS selector.

    Mirrors CSS.escape() for the characters a sender name can carry, so
    ``.Dr\\._Who`` still selects ``class="Dr._Who"``.
    """
    parts: list[str] = []
    for i, char in enumerate(token):
        if char.isascii() and (char.isalnum() or char in "-_"):
            if i == 0 and char.isdigit():
                parts.append(f"\\{ord(char):x} ")
            else:
                parts.append(char)
        elif not char.isascii() and char.isprintable():
            parts.append(char)
        elif char.isprintable():
            parts.append("\\" + char)
        else:
            parts.append(f"\\{ord(char):x} ")
    return "".join(parts)


@functools.lru_cache(maxsize=1)
def get_template_environment() -> Environment:
    """Get cached Jinja2 template environment for HTML rendering.

    Templates are loaded from the package's ``templates`` directory with
    HTML auto-escaping enabled.
    """
    templates_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=select_autoescape(["html", "xml"]),
        keep_trailing_newline=True,
    )
    env.filters["css_identifier"] = css_identifier
    return env
