#!/usr/bin/env python3
"""Assemble the final HTML document from rendered messages."""

from typing import Iterable, Sequence

from .config import ChatConfig
from .html.utils import get_template_environment
from .models import Document, ParsedMessage, SenderRegistry


def assign_colors(senders: Sequence[str], palette: Sequence[str]) -> dict[str, str]:
    """Map each sender to a palette color by order of first appearance.

    Senders beyond the end of the palette all get its last color.
    """
    if not palette:
        raise ValueError("Color palette must not be empty")
    last = len(palette) - 1
    return {
        sender: palette[max(min(i, last), 0)] for i, sender in enumerate(senders)
    }


def build_document(
    messages: Iterable[ParsedMessage], senders: SenderRegistry, config: ChatConfig
) -> Document:
    """Collect rendered fragments and sender colors for one document."""
    return Document(
        fragments=[message.rendered_html for message in messages],
        sender_colors=assign_colors(senders.senders, config.named_colors),
    )


def render_document(
    fragments: Sequence[str], sender_colors: dict[str, str], config: ChatConfig
) -> str:
    """Render the complete HTML page.

    One CSS rule per sender is generated after the configured base styles,
    except for an empty sender name, which has no valid class selector.
    Message fragments appear in the given order.
    """
    template = get_template_environment().get_template("document.html")
    return template.render(
        language=config.html_primary_language,
        title=config.html_title,
        base_styles=config.html_base_styles,
        sender_colors=sender_colors,
        message_style=config.html_single_message_style,
        fragments=fragments,
    )


def generate_html(document: Document, config: ChatConfig) -> str:
    return render_document(document.fragments, document.sender_colors, config)
