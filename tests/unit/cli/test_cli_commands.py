"""Tests for the tilbot command line."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from tilbot.cli.main import app
from tilbot.core.errors import ConfigError
from tests.factories import make_document, nested

runner = CliRunner()


def test_version_flag():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "Tilbot version" in result.output


class TestValidate:
    """Tests for the validate command."""

    def test_valid_project_file(self, project_dir):
        result = runner.invoke(app, ["validate", str(project_dir / "project.json")])

        assert result.exit_code == 0
        assert "Project is valid: 3 blocks, 0 groups, 0 triggers" in result.output

    def test_config_directory(self, project_dir):
        result = runner.invoke(app, ["validate", str(project_dir)])

        assert result.exit_code == 0
        assert "Project is valid" in result.output

    def test_counts_nested_blocks(self, tmp_path):
        path = tmp_path / "nested.json"
        path.write_text(json.dumps(make_document(nested(2))), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path)])

        assert "3 blocks, 2 groups, 0 triggers" in result.output

    def test_invalid_project_lists_problems(self, tmp_path):
        # Arrange
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"starting_block_id": "9", "blocks": {}}), encoding="utf-8")

        # Act
        result = runner.invoke(app, ["validate", str(path)])

        # Assert
        assert result.exit_code == 1
        assert "Project is invalid" in result.output
        assert "starting block '9' does not exist" in result.output

    def test_undecodable_project_is_reported(self, tmp_path):
        path = tmp_path / "latin1.json"
        path.write_bytes(b'{"starting_block_id": "\xff"}')

        result = runner.invoke(app, ["validate", str(path)])

        assert result.exit_code == 1
        assert "Project is invalid" in result.output
        assert "Cannot read project file" in result.output

    def test_depth_limit_override(self, tmp_path):
        path = tmp_path / "deep.json"
        path.write_text(json.dumps(make_document(nested(3))), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(path), "--max-depth", "2"])

        assert result.exit_code == 1
        assert "limit 2" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestChatCommand:
    """Tests for the chat command wiring."""

    def test_passes_options_to_runner(self, project_dir):
        with patch("tilbot.cli.chat_runner.run_chat_session", new_callable=AsyncMock) as run:
            result = runner.invoke(
                app,
                ["chat", "--config", str(project_dir), "--no-delay", "--session", "me"],
            )

        assert result.exit_code == 0
        chat_config = run.await_args.args[0]
        assert chat_config.no_delay is True
        assert chat_config.session_id == "me"
        assert chat_config.config_path == project_dir

    def test_fatal_error_exits_non_zero(self, project_dir):
        with patch(
            "tilbot.cli.chat_runner.run_chat_session",
            new_callable=AsyncMock,
            side_effect=ConfigError("bad config"),
        ):
            result = runner.invoke(app, ["chat", "--config", str(project_dir)])

        assert result.exit_code == 1


class TestServerCommand:
    """Tests for the server command wiring."""

    def test_starts_uvicorn_with_config(self, project_dir, monkeypatch):
        monkeypatch.setenv("TILBOT_CONFIG_PATH", "unset")
        config_path = project_dir / "tilbot.yaml"

        with patch("tilbot.cli.commands.server.uvicorn.run") as run:
            result = runner.invoke(app, ["server", "--config", str(config_path), "--port", "9000"])

        assert result.exit_code == 0
        run.assert_called_once()
        assert run.call_args.args == ("tilbot.server.api:app",)
        assert run.call_args.kwargs["port"] == 9000
        assert run.call_args.kwargs["host"] == "0.0.0.0"

    def test_invalid_project_does_not_start(self, project_dir, monkeypatch):
        monkeypatch.setenv("TILBOT_CONFIG_PATH", "unset")
        (project_dir / "project.json").write_text("[]", encoding="utf-8")

        with patch("tilbot.cli.commands.server.uvicorn.run") as run:
            result = runner.invoke(app, ["server", "--config", str(project_dir / "tilbot.yaml")])

        assert result.exit_code == 1
        run.assert_not_called()

    @pytest.mark.parametrize("missing", ["nope.yaml"])
    def test_missing_config_file_is_rejected(self, tmp_path, missing):
        result = runner.invoke(app, ["server", "--config", str(tmp_path / missing)])

        assert result.exit_code != 0
