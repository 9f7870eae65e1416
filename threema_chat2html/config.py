"""Configuration for the HTML output.

The defaults can be overridden by a JSON file named ``threema_chat2html.config``
holding an object with any of these keys::

    {
        "messagesFilename": "messages.txt",
        "htmlPrimaryLanguage": "de",
        "htmlTitle": "Threema",
        "htmlBaseStyles": ["body{ font-family:Arial,Helvetica,sans-serif; }"],
        "htmlSingleMessageStyle": "margin-top: 15px;",
        "namedColors": ["FireBrick", "DarkBlue"]
    }

A broken file never stops a conversion: a warning is logged and the
defaults are used.
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "threema_chat2html.config"

DEFAULT_BASE_STYLES = [
    "body{ font-family:Arial,Helvetica,sans-serif; }",
    "img{ width:100%; max-width:500px; }",
    ".bold { font-weight: bold; }",
    ".italics { font-style: italic; }",
    ".strikethrough { text-decoration: line-through; }",
    ".prefix { font-style: italic; font-size:x-small; }",
]

DEFAULT_SINGLE_MESSAGE_STYLE = (
    "margin-top: 15px; margin-bottom: 0px; margin-right: 0px; margin-left: 0px;"
)

# Web colors, assigned to senders in order of first appearance
DEFAULT_NAMED_COLORS = [
    "FireBrick", "DarkBlue", "Green", "Purple", "Maroon", "AliceBlue",
    "AntiqueWhite", "Aqua", "Aquamarine", "Azure", "Beige", "Bisque", "Black",
    "BlanchedAlmond", "Blue", "BlueViolet", "Brown", "BurlyWood", "CadetBlue",
    "Chartreuse", "Chocolate", "Coral", "CornflowerBlue", "Cornsilk", "Crimson",
    "Cyan", "DarkCyan", "DarkGoldenRod", "DarkGray", "DarkGrey", "DarkGreen",
    "DarkKhaki", "DarkMagenta", "DarkOliveGreen", "DarkOrange", "DarkOrchid",
    "DarkRed", "DarkSalmon", "DarkSeaGreen", "DarkSlateBlue", "DarkSlateGray",
    "DarkSlateGrey", "DarkTurquoise", "DarkViolet", "DeepPink", "DeepSkyBlue",
    "DimGray", "DimGrey", "DodgerBlue", "FloralWhite", "ForestGreen", "Fuchsia",
    "Gainsboro", "GhostWhite", "Gold", "GoldenRod", "Gray", "Grey",
    "GreenYellow", "HoneyDew", "HotPink", "IndianRed", "Indigo", "Ivory",
    "Khaki", "Lavender", "LavenderBlush", "LawnGreen", "LemonChiffon",
    "LightBlue", "LightCoral", "LightCyan", "LightGoldenRodYellow", "LightGray",
    "LightGrey", "LightGreen", "LightPink", "LightSalmon", "LightSeaGreen",
    "LightSkyBlue", "LightSlateGray", "LightSlateGrey", "LightSteelBlue",
    "LightYellow", "Lime", "LimeGreen", "Linen", "Magenta", "MediumAquaMarine",
    "MediumBlue", "MediumOrchid", "MediumPurple", "MediumSeaGreen",
    "MediumSlateBlue", "MediumSpringGreen", "MediumTurquoise", "MediumVioletRed",
    "MidnightBlue", "MintCream", "MistyRose", "Moccasin", "NavajoWhite", "Navy",
    "OldLace", "Olive", "OliveDrab", "Orange", "OrangeRed", "Orchid",
    "PaleGoldenRod", "PaleGreen", "PaleTurquoise", "PaleVioletRed", "PapayaWhip",
    "PeachPuff", "Peru", "Pink", "Plum", "PowderBlue", "RebeccaPurple", "Red",
    "RosyBrown", "RoyalBlue", "SaddleBrown", "Salmon", "SandyBrown", "SeaGreen",
    "SeaShell", "Sienna", "Silver", "SkyBlue", "SlateBlue", "SlateGray",
    "SlateGrey", "Snow", "SpringGreen", "SteelBlue", "Tan", "Teal", "Thistle",
    "Tomato", "Turquoise", "Violet", "Wheat", "White", "WhiteSmoke", "Yellow",
    "YellowGreen",
]  # fmt: skip


class ConfigurationError(ValueError):
    """The configuration file content is not a valid configuration object."""


class ChatConfig(BaseModel):
    """Settings for locating the messages file and styling the HTML output."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    messages_filename: StrictStr = Field(
        default="messages.txt", alias="messagesFilename"
    )
    html_primary_language: StrictStr = Field(default="de", alias="htmlPrimaryLanguage")
    html_title: StrictStr = Field(default="Threema", alias="htmlTitle")
    html_base_styles: list[StrictStr] = Field(
        default_factory=lambda: list(DEFAULT_BASE_STYLES), alias="htmlBaseStyles"
    )
    html_single_message_style: StrictStr = Field(
        default=DEFAULT_SINGLE_MESSAGE_STYLE, alias="htmlSingleMessageStyle"
    )
    named_colors: list[StrictStr] = Field(
        default_factory=lambda: list(DEFAULT_NAMED_COLORS),
        alias="namedColors",
        min_length=1,
    )


def _describe_validation_error(error: ValidationError) -> str:
    messages: list[str] = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        if item["type"] == "extra_forbidden":
            messages.append(f"forbidden key '{location}'")
        else:
            messages.append(f"key '{location}': {item['msg']}")
    return "; ".join(messages)


def parse_configuration(data: Any) -> ChatConfig:
    """Validate decoded JSON and build a configuration from it.

    Raises:
        ConfigurationError: If ``data`` is not an object, contains an unknown
            key, or a value of the wrong type.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("configuration must be a JSON object")
    try:
        return ChatConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(_describe_validation_error(e)) from e


def find_configuration_file(directories: Iterable[Path]) -> Optional[Path]:
    """Return the first existing configuration file in the given directories."""
    seen: set[Path] = set()
    for directory in directories:
        directory = directory.resolve()
        if directory in seen:
            continue
        seen.add(directory)
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_configuration(config_path: Optional[Path]) -> ChatConfig:
    """Load configuration from a JSON file, falling back to the defaults.

    Unreadable files, invalid JSON and invalid content are logged as
    warnings; the defaults are returned in those cases and when
    ``config_path`` is None.
    """
    if config_path is None:
        logger.info("No configuration file found; using default configuration")
        return ChatConfig()

    try:
        raw = config_path.read_text(encoding="utf-8-sig")
    except OSError as e:
        logger.warning(
            "Configuration file '%s' not readable (%s); "
            "will use default configuration values.",
            config_path,
            e,
        )
        return ChatConfig()

    try:
        config = parse_configuration(json.loads(raw))
    except (json.JSONDecodeError, ConfigurationError) as e:
        logger.warning(
            "Configuration file '%s' does not contain a valid JSON object (%s); "
            "will use default configuration values.",
            config_path,
            e,
        )
        return ChatConfig()

    logger.info("Using configuration file '%s'", config_path)
    return config
