"""
Tests for configuration loading.

Each test runs in its own directory so a developer's real .env
never leaks in.
"""

import pytest

from moneynote.config import (
    AppSettings,
    GeminiSettings,
    GoogleSheetsSettings,
    get_settings,
    validate_all_settings,
)

ENV_NAMES = [
    "GEMINI_API_KEY",
    "GEMINI_MODEL_NAME",
    "GOOGLE_SHEETS_CREDENTIALS_PATH",
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "DEFAULT_LANGUAGE",
]


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


class TestDotEnv:
    """Every settings class reads the .env file."""

    def test_gemini_from_env_file(self, workdir):
        (workdir / ".env").write_text(
            "GEMINI_API_KEY=abc\nGEMINI_MODEL_NAME=gemini-pro\n", encoding="utf-8"
        )
        settings = GeminiSettings()
        assert settings.api_key == "abc"
        assert settings.model_name == "gemini-pro"

    def test_google_sheets_from_env_file(self, workdir):
        credentials = workdir / "service_account.json"
        credentials.write_text("{}", encoding="utf-8")
        (workdir / ".env").write_text(
            f"GOOGLE_SHEETS_CREDENTIALS_PATH={credentials}\n"
            "GOOGLE_SHEETS_SPREADSHEET_ID=sheet-123\n",
            encoding="utf-8",
        )
        settings = GoogleSheetsSettings()
        assert settings.spreadsheet_id == "sheet-123"
        assert settings.transactions_sheet_name == "Transactions"

    def test_app_from_env_file(self, workdir):
        (workdir / ".env").write_text("DEFAULT_LANGUAGE=en\n", encoding="utf-8")
        assert AppSettings().default_language == "en"

    def test_environment_overrides_env_file(self, workdir, monkeypatch):
        (workdir / ".env").write_text("GEMINI_API_KEY=from-file\n", encoding="utf-8")
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        assert GeminiSettings().api_key == "from-env"


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_missing_services_are_reported(self, workdir):
        status = validate_all_settings()
        assert status["app"] is True
        assert status["gemini"] is False
        assert "api_key" in status["gemini_error"]
        assert status["google_sheets"] is False

    def test_gemini_configured_through_env_file(self, workdir):
        (workdir / ".env").write_text("GEMINI_API_KEY=abc\n", encoding="utf-8")
        status = validate_all_settings()
        assert status["gemini"] is True
        assert "gemini_error" not in status
