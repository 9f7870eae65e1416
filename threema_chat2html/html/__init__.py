"""HTML-specific rendering utilities package.

Re-exports the escaping, inline style and media formatting functions.
"""

from .utils import (
    INLINE_STYLES,
    apply_inline_styles,
    apply_style,
    css_identifier,
    escape_html,
    get_template_environment,
)
from .media_formatters import (
    encode_uri_component,
    format_audio,
    format_image,
    format_link,
    format_media_entry,
    format_video,
    resolve_media_reference,
)

__all__ = [
    # utils
    "INLINE_STYLES",
    "apply_inline_styles",
    "apply_style",
    "css_identifier",
    "escape_html",
    "get_template_environment",
    # media_formatters
    "encode_uri_component",
    "format_audio",
    "format_image",
    "format_link",
    "format_media_entry",
    "format_video",
    "resolve_media_reference",
]
