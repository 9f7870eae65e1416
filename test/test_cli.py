#!/usr/bin/env python3
"""Tests for CLI functionality and helper functions."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from threema_chat2html.cli import get_config_search_dirs, main
from threema_chat2html.config import CONFIG_FILENAME


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestGetConfigSearchDirs:
    def test_priority_order(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        dirs = get_config_search_dirs(tmp_path / "archive")
        assert dirs[0] == tmp_path / "archive"
        assert dirs[1] == tmp_path
        assert len(dirs) == 3


class TestMain:
    """Tests for the threema-chat2html command."""

    def test_converts_archive(self, runner: CliRunner, archive_dir: Path, tmp_path: Path):
        output = tmp_path / "chat.html"
        result = runner.invoke(main, [str(archive_dir), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "Successfully converted" in result.output
        assert output.exists()

    def test_messages_filename_argument(
        self, runner: CliRunner, archive_dir: Path, tmp_path: Path
    ):
        (archive_dir / "export.txt").write_text("[2024-05-05, 08:00] Zoe: hi")
        output = tmp_path / "chat.html"
        result = runner.invoke(
            main, [str(archive_dir), "export.txt", "--output", str(output)]
        )
        assert result.exit_code == 0, result.output
        assert "(Zoe):</span> hi" in output.read_text(encoding="utf-8")

    def test_defaults_to_current_directory(
        self, runner: CliRunner, archive_dir: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.chdir(archive_dir)
        result = runner.invoke(main, [])
        assert result.exit_code == 0, result.output
        assert list(archive_dir.glob("threema-*.html"))

    def test_config_file_in_archive_dir(
        self, runner: CliRunner, archive_dir: Path, tmp_path: Path
    ):
        (archive_dir / CONFIG_FILENAME).write_text(
            json.dumps({"htmlTitle": "From config"})
        )
        output = tmp_path / "chat.html"
        result = runner.invoke(main, [str(archive_dir), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "<title>From config</title>" in output.read_text(encoding="utf-8")

    def test_explicit_config_option(
        self, runner: CliRunner, archive_dir: Path, tmp_path: Path
    ):
        config_path = tmp_path / "custom.json"
        config_path.write_text(json.dumps({"htmlPrimaryLanguage": "fr"}))
        output = tmp_path / "chat.html"
        result = runner.invoke(
            main, [str(archive_dir), "-c", str(config_path), "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        assert '<html lang="fr">' in output.read_text(encoding="utf-8")

    def test_broken_config_is_not_fatal(
        self, runner: CliRunner, archive_dir: Path, tmp_path: Path
    ):
        (archive_dir / CONFIG_FILENAME).write_text("[1, 2, 3]")
        output = tmp_path / "chat.html"
        result = runner.invoke(main, [str(archive_dir), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "<title>Threema</title>" in output.read_text(encoding="utf-8")

    def test_missing_directory(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(main, [str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "Error: Path" in result.output
        assert "--help" in result.output

    def test_missing_messages_file(self, runner: CliRunner, archive_dir: Path):
        result = runner.invoke(main, [str(archive_dir), "missing.txt"])
        assert result.exit_code == 1
        assert "Could not find file 'missing.txt'" in result.output

    def test_not_a_threema_archive(self, runner: CliRunner, tmp_path: Path):
        archive = tmp_path / "archive"
        archive.mkdir()
        (archive / "messages.txt").write_text("hello\n")
        result = runner.invoke(main, [str(archive)])
        assert result.exit_code == 1
        assert "not a Threema archive file?" in result.output
        assert list(archive.glob("*.html")) == []

    def test_help_contains_steps(self, runner: CliRunner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Archive chat" in result.output
        assert CONFIG_FILENAME in result.output
        assert "--from-date" in result.output

    def test_short_help_option(self, runner: CliRunner):
        result = runner.invoke(main, ["-h"])
        assert result.exit_code == 0
        assert "Usage:" in result.output
        assert "--output" in result.output
