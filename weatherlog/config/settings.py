from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEMO_API_KEY = "demo_key_replace_with_real_key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Weather Log API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: Literal["development", "production"] = "development"

    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1

    openweather_api_key: str | None = Field(
        default=None, description="OpenWeatherMap API key"
    )
    openweather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap API base URL",
    )
    weather_api_timeout: float = Field(
        default=10, description="Weather API request timeout in seconds"
    )

    database_path: str = Field(
        default="./database/weather.db",
        description="SQLite database path for the weather log",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def has_api_key(self) -> bool:
        key = (self.openweather_api_key or "").strip()
        return bool(key) and key != DEMO_API_KEY


settings = Settings()
