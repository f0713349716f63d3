import pytest

from channel_intake.core.config import Settings


def test_cors_origins_accepts_comma_separated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_CORS_ORIGINS", "chrome-extension://abc, https://example.com,")
    settings = Settings(_env_file=None)
    assert settings.cors_origins == ["chrome-extension://abc", "https://example.com"]


def test_masked_hides_secrets() -> None:
    settings = Settings(
        _env_file=None,
        database_url="postgresql+asyncpg://user:secret@db:5432/influencers",
        youtube_api_key="AIza-secret",
    )
    masked = settings.masked()
    assert masked["youtube_api_key"] == "set"
    assert "secret" not in str(masked)
    assert masked["database_url"] == "db:5432/influencers"
