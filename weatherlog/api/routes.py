import re
from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import JSONResponse

from weatherlog.models.responses import error_response, success_response
from weatherlog.providers.database.base import DEFAULT_HISTORY_LIMIT
from weatherlog.services.weather_service import WeatherService
from weatherlog.utils.exceptions import ValidationError, WeatherAPIError

logger = structlog.get_logger(__name__)
router = APIRouter()

_LEADING_INT = re.compile(r"\s*([+-]?\d+)", re.ASCII)


def get_weather_service(request: Request) -> WeatherService:
    """
    Dependency injection for weather service.

    Retrieves the weather service instance from the application state.
    This service is initialized during application startup.
    """
    service = getattr(request.app.state, "weather_service", None)
    if service is None:
        raise WeatherAPIError("Weather service not available")

    return service


def parse_limit(raw: str | None, default: int = DEFAULT_HISTORY_LIMIT) -> int:
    """
    Parse the history limit from its leading integer ("5abc" reads as 5).

    Absent, non-numeric or non-positive values give the default.
    """
    match = _LEADING_INT.match(raw or "")
    if match is None:
        return default
    try:
        limit = int(match.group(1))
    except ValueError:
        # digit strings past the int conversion limit
        return default
    return limit if limit > 0 else default


def _failure(message: str, exc: WeatherAPIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message, str(exc)),
    )


async def _weather_for(city: str, weather_service: WeatherService) -> JSONResponse:
    try:
        record = await weather_service.get_weather(city)
    except WeatherAPIError as e:
        logger.error(
            "Weather fetch failed",
            city=city,
            error=str(e),
            error_type=type(e).__name__,
        )
        return _failure("Failed to fetch weather data", e)

    logger.info(
        "Weather data retrieved successfully",
        city=city,
        temperature=record.temperature,
        description=record.description,
    )
    return JSONResponse(
        content=success_response(record.to_response(), f"Weather data for {city}")
    )


@router.get(
    "/health",
    summary="Service health check",
    description="Reports database reachability and whether an API key is configured.",
    tags=["Health"],
)
async def health_check(
    weather_service: WeatherService = Depends(get_weather_service),
) -> dict[str, Any]:
    health = await weather_service.health_check()
    logger.info("Health check requested", status=health["service"])
    return success_response(health, "API is healthy")


@router.get(
    "/weather",
    summary="Get current weather by city (query parameter)",
    responses={
        400: {"description": "Missing or blank city parameter"},
        500: {"description": "Upstream, configuration or storage failure"},
    },
    tags=["Weather"],
)
async def get_weather_by_query(
    city: Annotated[
        str | None,
        Query(description="City name to get weather data for", examples=["London"]),
    ] = None,
    weather_service: WeatherService = Depends(get_weather_service),
) -> JSONResponse:
    """Fetch, store and return current weather for ``?city=``."""
    if not city or not city.strip():
        raise ValidationError(
            "Please provide a city name as query parameter (?city=London)",
            field="city",
        )

    logger.info("Weather request received", city=city, method="query parameter")
    return await _weather_for(city, weather_service)


@router.get(
    "/weather/{city}",
    summary="Get current weather by city (path parameter)",
    responses={
        400: {"description": "Blank city parameter"},
        500: {"description": "Upstream, configuration or storage failure"},
    },
    tags=["Weather"],
)
async def get_weather_by_city(
    city: Annotated[str, Path(description="City name to get weather data for")],
    weather_service: WeatherService = Depends(get_weather_service),
) -> JSONResponse:
    """Fetch, store and return current weather for the city in the path."""
    if not city.strip():
        raise ValidationError(
            "City parameter must be a non-empty string", field="city"
        )

    logger.info("Weather request received", city=city, method="URL parameter")
    return await _weather_for(city, weather_service)


@router.get(
    "/weather/{city}/history",
    summary="Get stored weather history for a city",
    tags=["Weather"],
)
async def get_weather_history(
    city: Annotated[str, Path(description="Exact city name as stored")],
    limit: Annotated[
        str | None,
        Query(description="Maximum number of records to return (default 10)"),
    ] = None,
    weather_service: WeatherService = Depends(get_weather_service),
) -> JSONResponse:
    """Return the most recent stored records for a city, newest first."""
    if not city.strip():
        raise ValidationError(
            "City parameter must be a non-empty string", field="city"
        )

    parsed_limit = parse_limit(limit)
    logger.info("Weather history request received", city=city, limit=parsed_limit)

    try:
        history = await weather_service.get_weather_history(city, parsed_limit)
    except WeatherAPIError as e:
        logger.error(
            "Weather history fetch failed", city=city, limit=parsed_limit, error=str(e)
        )
        return _failure("Failed to fetch weather history", e)

    logger.info(
        "Weather history retrieved successfully",
        city=city,
        record_count=len(history),
        requested_limit=parsed_limit,
    )
    return JSONResponse(
        content=success_response(
            [record.to_response() for record in history],
            f"Weather history for {city} ({len(history)} records)",
        )
    )


@router.delete(
    "/weather/{city}/history",
    summary="Delete stored weather history for a city",
    tags=["Administration"],
)
async def delete_weather_history(
    city: Annotated[str, Path(description="Exact city name as stored")],
    weather_service: WeatherService = Depends(get_weather_service),
) -> JSONResponse:
    """Remove every stored record for a city."""
    logger.info("Weather history deletion requested", city=city)

    try:
        deleted = await weather_service.delete_weather_history(city)
    except WeatherAPIError as e:
        logger.error("Weather history deletion failed", city=city, error=str(e))
        return _failure("Failed to delete weather history", e)

    return JSONResponse(
        content=success_response(
            {"city": city, "deleted": deleted},
            f"Deleted {deleted} weather records for {city}",
        )
    )
