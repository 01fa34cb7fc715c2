"""
Tests for configuration and the local launcher.
"""

import sys
import pytest
from pathlib import Path

import household_budget
from household_budget.config import (
    AppSettings,
    GoogleDriveSettings,
    ServerSettings,
    Settings,
    StorageSettings,
    validate_all_settings,
)
from household_budget.server import DEFAULT_APP_PATH, app_url, build_streamlit_command, main


class TestSettings:
    """Tests for defaults and environment overrides."""

    def test_storage_defaults(self):
        settings = StorageSettings()
        assert settings.budget_key == "yaifinanzas_budget"
        assert settings.users_key == "yaifinanzas_users"

    def test_storage_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BUDGET_STORAGE_DATA_DIR", str(tmp_path))
        assert StorageSettings().data_dir == tmp_path

    def test_server_base_path_is_trimmed(self):
        assert ServerSettings(base_path="/YAiFinanzas/").base_path == "YAiFinanzas"

    def test_server_port_bounds(self):
        with pytest.raises(ValueError):
            ServerSettings(port=70000)

    def test_app_defaults(self):
        settings = AppSettings()
        assert settings.default_exchange_rate == 64.5
        assert (settings.primary_currency, settings.secondary_currency) == ("EUR", "DOP")

    def test_drive_scopes_list(self, tmp_path):
        token = tmp_path / "token.json"
        token.write_text("{}", encoding="utf-8")
        settings = GoogleDriveSettings(credentials_path=str(token), scopes="a, b,")
        assert settings.scopes_list == ["a", "b"]

    def test_validate_all_settings_reports_missing_drive(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_DRIVE_CREDENTIALS_PATH", raising=False)
        status = validate_all_settings(Settings())
        assert status["storage"] is True
        assert status["app"] is True
        assert status["google_drive"] is False
        assert "google_drive_error" in status


class TestLauncher:
    """Tests for the streamlit command line."""

    def test_command(self):
        command = build_streamlit_command(ServerSettings(), Path("app/main.py"))
        assert command[:5] == [sys.executable, "-m", "streamlit", "run", "app/main.py"]
        assert command[command.index("--server.port") + 1] == "3006"
        assert command[command.index("--server.baseUrlPath") + 1] == "YAiFinanzas"

    def test_command_without_prefix(self):
        command = build_streamlit_command(ServerSettings(base_path=""), Path("app/main.py"))
        assert "--server.baseUrlPath" not in command

    def test_app_url(self):
        assert app_url(ServerSettings()) == "http://localhost:3006/YAiFinanzas/"

    def test_missing_app_file(self, tmp_path):
        assert main([str(tmp_path / "nope.py")]) == 1

    def test_default_app_ships_with_package(self):
        """The launcher must find the UI script in an installed package."""
        package_dir = Path(household_budget.__file__).resolve().parent
        assert DEFAULT_APP_PATH.exists()
        assert package_dir in DEFAULT_APP_PATH.parents


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
