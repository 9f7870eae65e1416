#!/usr/bin/env python3
"""CLI interface for threema-chat2html."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click

from .config import CONFIG_FILENAME, find_configuration_file, load_configuration
from .converter import convert_chat_to_html
from .files import FileSystemError
from .parser import NotAThreemaArchive

HELP_EPILOG = f"""\b
Follow these steps:
1. Archive the chat:
   a) In Threema, select the chat,
   b) then choose "Archive chat" from the pop-up menu.
2. Copy or move the resulting archive file to your PC.
3. Create a new empty folder in any location you prefer.
4. Unpack the archived Threema chat into this empty folder.
5. Run this program on that folder.

\b
Configuration file:
The first '{CONFIG_FILENAME}' found in these folders is used:
a) DIRECTORY_PATH
b) the current directory
c) the directory containing this program
If none is found, the built-in configuration is used.
"""


def get_program_dir() -> Path:
    """Directory holding the running program (script or console entry point)."""
    return Path(sys.argv[0]).resolve().parent


def get_config_search_dirs(directory: Path) -> list[Path]:
    """Folders searched for a configuration file, in priority order."""
    return [directory, Path(os.getcwd()), get_program_dir()]


@click.command(
    epilog=HELP_EPILOG, context_settings={"help_option_names": ["-h", "--help"]}
)
@click.argument(
    "directory_path",
    type=click.Path(path_type=Path),
    required=False,
    default=Path("."),
)
@click.argument("messages_filename", required=False)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Output file path (default: a new threema-<timestamp>.html in DIRECTORY_PATH)",
)
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help=f"Configuration file to use instead of searching for '{CONFIG_FILENAME}'",
)
@click.option(
    "--from-date",
    type=str,
    help='Only include messages from this date/time (e.g., "yesterday", "2024-06-08")',
)
@click.option(
    "--to-date",
    type=str,
    help='Only include messages up to this date/time (e.g., "today", "2024-06-08 15:00")',
)
@click.option(
    "--open-browser",
    is_flag=True,
    help="Open the generated HTML file in the default browser",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=False,
    help="Show informational log messages.",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Show full traceback on errors.",
)
def main(
    directory_path: Path,
    messages_filename: Optional[str],
    output: Optional[Path],
    config_path: Optional[Path],
    from_date: Optional[str],
    to_date: Optional[str],
    open_browser: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """Convert a Threema chat archive into an HTML file with media links.

    DIRECTORY_PATH: Folder containing the extracted Threema files (default: current directory).

    MESSAGES_FILENAME: Name of the messages file (default: 'messages.txt').
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        directory = directory_path.resolve()
        if config_path is None:
            config_path = find_configuration_file(get_config_search_dirs(directory))
        config = load_configuration(config_path)

        output_path = convert_chat_to_html(
            directory,
            messages_filename,
            output,
            config,
            from_date=from_date,
            to_date=to_date,
        )
        click.echo(f"Successfully converted {directory} to {output_path}")

        if open_browser:
            click.launch(str(output_path))

    except FileSystemError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("Run with --help for usage and hints.", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)
    except NotAThreemaArchive as e:
        click.echo(f"Error: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error converting chat: {e}", err=True)
        if debug:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
