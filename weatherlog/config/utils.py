from pathlib import Path

from .settings import DEMO_API_KEY, Settings, settings


def validate_configuration(
    settings_obj: Settings | None = None,
) -> dict[str, list[str] | bool]:
    """Validate configuration and return validation results."""
    settings_obj = settings_obj or settings
    errors = []
    warnings = []

    api_key = (settings_obj.openweather_api_key or "").strip()
    if not api_key:
        warnings.append(
            "OPENWEATHER_API_KEY is not set; weather lookups will fail until it is"
        )
    elif api_key == DEMO_API_KEY:
        warnings.append(
            "OPENWEATHER_API_KEY still holds the demo placeholder; "
            "replace it with a real OpenWeather API key"
        )

    if not settings_obj.openweather_base_url.startswith(("http://", "https://")):
        errors.append("OPENWEATHER_BASE_URL must be an http(s) URL")

    if settings_obj.weather_api_timeout <= 0:
        errors.append("WEATHER_API_TIMEOUT must be a positive number")

    if not settings_obj.database_path:
        errors.append("DATABASE_PATH must be set")
    elif Path(settings_obj.database_path).is_dir():
        errors.append("DATABASE_PATH must point to a file, not a directory")

    if not (1 <= settings_obj.port <= 65535):
        errors.append("PORT must be between 1 and 65535")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


def get_config_summary(
    settings_obj: Settings | None = None,
) -> dict[str, str | int | float | bool]:
    """Get a summary of current configuration for logging/debugging."""
    settings_obj = settings_obj or settings
    return {
        "app_name": settings_obj.app_name,
        "version": settings_obj.app_version,
        "environment": settings_obj.environment,
        "debug": settings_obj.debug,
        "log_level": settings_obj.log_level,
        "api_endpoint": f"{settings_obj.host}:{settings_obj.port}",
        "weather_api_url": settings_obj.openweather_base_url,
        "weather_api_timeout": settings_obj.weather_api_timeout,
        "weather_api_configured": settings_obj.has_api_key,
        "database_path": settings_obj.database_path,
    }
