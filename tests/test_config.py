import pytest

from weatherlog.config.settings import Settings
from weatherlog.config.utils import get_config_summary, validate_configuration


@pytest.fixture
def valid_settings(tmp_path):
    return Settings(
        openweather_api_key="test-api-key",
        database_path=str(tmp_path / "weather.db"),
    )


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.openweather_base_url == "https://api.openweathermap.org/data/2.5"
    assert settings.weather_api_timeout == 10
    assert settings.database_path == "./database/weather.db"


def test_api_key_read_from_environment(monkeypatch):
    monkeypatch.setenv("OPENWEATHER_API_KEY", "from-env")

    settings = Settings(_env_file=None)

    assert settings.openweather_api_key == "from-env"
    assert settings.has_api_key


@pytest.mark.parametrize(
    "api_key,configured",
    [(None, False), ("  ", False), ("demo_key_replace_with_real_key", False), ("k", True)],
)
def test_has_api_key(api_key, configured):
    assert Settings(openweather_api_key=api_key).has_api_key is configured


def test_valid_configuration(valid_settings):
    result = validate_configuration(valid_settings)

    assert result["valid"] is True
    assert result["errors"] == []
    assert result["warnings"] == []


def test_missing_api_key_is_only_a_warning(tmp_path):
    result = validate_configuration(
        Settings(openweather_api_key=None, database_path=str(tmp_path / "w.db"))
    )

    assert result["valid"] is True
    assert any("OPENWEATHER_API_KEY" in w for w in result["warnings"])


def test_invalid_values_reported(tmp_path):
    result = validate_configuration(
        Settings(
            openweather_api_key="test-api-key",
            openweather_base_url="ftp://example.test",
            weather_api_timeout=0,
            database_path=str(tmp_path),
            port=70000,
        )
    )

    assert result["valid"] is False
    assert len(result["errors"]) == 4


def test_config_summary_hides_key(valid_settings):
    summary = get_config_summary(valid_settings)

    assert summary["weather_api_configured"] is True
    assert "test-api-key" not in summary.values()
