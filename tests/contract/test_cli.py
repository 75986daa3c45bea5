"""Contract tests for the dark-city-map CLI."""

import json
from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

from src.cli import check_config, main, roles, upload_glb
from src.cli.main import app
from src.lib.config import Settings
from src.models.role import Role


class TestCliContract:
    """Contract tests for command structure and exit codes."""

    @pytest.fixture
    def runner(self):
        """CLI test runner."""
        return CliRunner()

    @pytest.mark.parametrize("command", ["web", "upload-glb", "resolve-role", "check-config"])
    def test_command_help(self, runner, command):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0

    def test_web_port_from_environment(self, runner, monkeypatch):
        web_command = Mock()
        monkeypatch.setattr(main, "web_command", web_command)

        result = runner.invoke(app, ["web"], env={"PORT": "4321"})

        assert result.exit_code == 0
        assert web_command.call_args.kwargs["port"] == 4321

    def test_web_port_option_overrides_environment(self, runner, monkeypatch):
        web_command = Mock()
        monkeypatch.setattr(main, "web_command", web_command)

        result = runner.invoke(app, ["web", "--port", "8080"], env={"PORT": "4321"})

        assert result.exit_code == 0
        assert web_command.call_args.kwargs["port"] == 8080

    def test_upload_glb_help_text(self, runner):
        result = runner.invoke(app, ["upload-glb", "--help"])
        assert "Upload the map model to GridFS" in result.stdout

    def test_upload_glb_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["upload-glb", str(tmp_path / "missing.glb")])
        assert result.exit_code == 1

    def test_upload_glb_without_mongodb_uri(self, runner, tmp_path, monkeypatch):
        glb = tmp_path / "map.glb"
        glb.write_bytes(b"glTF")
        monkeypatch.setattr(upload_glb, "load_settings", lambda: Settings(mongodb_uri=None))

        result = runner.invoke(app, ["upload-glb", str(glb)])
        assert result.exit_code == 1

    def test_upload_glb_success(self, runner, tmp_path, monkeypatch):
        glb = tmp_path / "map.glb"
        glb.write_bytes(b"glTF")
        store = Mock()
        store.upload.return_value = "65f0c0ffee"
        monkeypatch.setattr(upload_glb, "load_settings", lambda: Settings(mongodb_uri="mongodb://db.test"))
        monkeypatch.setattr(upload_glb, "get_database", lambda settings: Mock())
        monkeypatch.setattr(upload_glb, "close_client", lambda: None)
        monkeypatch.setattr(upload_glb, "create_map_asset_store", lambda *args: store)

        result = runner.invoke(app, ["upload-glb", str(glb)])

        assert result.exit_code == 0
        assert "65f0c0ffee" in result.stdout
        store.upload.assert_called_once_with(glb.resolve())

    def test_resolve_role_without_discord_config(self, runner, monkeypatch):
        monkeypatch.setattr(roles, "load_settings", lambda: Settings())
        result = runner.invoke(app, ["resolve-role", "100000000000000042"])
        assert result.exit_code == 1

    def test_resolve_role_json(self, runner, monkeypatch):
        resolver = Mock()
        resolver.resolve_role.return_value = Role.WRITER
        monkeypatch.setattr(roles, "load_settings", lambda: Settings())
        monkeypatch.setattr(roles, "create_role_resolver", lambda settings: resolver)

        result = runner.invoke(app, ["resolve-role", "42", "--output-format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["role"] == "writer"
        assert "create_map_pin" in data["permissions"]

    def test_check_config_reports_problems(self, runner, monkeypatch):
        monkeypatch.setattr(check_config, "load_settings", lambda: Settings())
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 1
        assert "MONGODB_URI" in result.stdout

    def test_check_config_complete(self, runner, monkeypatch):
        settings = Settings(
            mongodb_uri="mongodb://db.test",
            discord_client_id="client",
            discord_client_secret="secret",
            discord_callback_url="http://localhost:3000/auth/discord/callback",
            discord_guild_id="900000000000000001",
            discord_bot_token="bot-token",
            session_secret="session-secret",
        )
        monkeypatch.setattr(check_config, "load_settings", lambda: settings)
        result = runner.invoke(app, ["check-config"])
        assert result.exit_code == 0
        assert "All required variables are set." in result.stdout
