import logging
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from weatherlog.config.settings import DEMO_API_KEY, Settings
from weatherlog.models.weather import WeatherRecord
from weatherlog.utils.exceptions import (
    APIRateLimitError,
    APIRequestError,
    APITimeoutError,
    CityNotFoundError,
    ConfigurationError,
    ExternalAPIError,
    InvalidAPIKeyError,
    ServiceUnreachableError,
)

logger = logging.getLogger(__name__)


class WeatherClient:
    """
    Async client for the OpenWeatherMap "current weather by city name" endpoint.

    Issues exactly one GET per lookup and maps the JSON body into a
    WeatherRecord. There is no retry: a failed call surfaces as a single
    typed error.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return self.settings.has_api_key

    @property
    def weather_url(self) -> str:
        return f"{self.settings.openweather_base_url.rstrip('/')}/weather"

    def _validate_config(self) -> None:
        """Validate client configuration"""
        api_key = (self.settings.openweather_api_key or "").strip()
        if not api_key:
            raise ConfigurationError(
                "OpenWeather API key is not configured. "
                "Please set OPENWEATHER_API_KEY environment variable."
            )
        if api_key == DEMO_API_KEY:
            raise ConfigurationError(
                "Demo API key detected. Please replace with your real OpenWeather API key."
            )

    async def __aenter__(self) -> "WeatherClient":
        """Async context manager entry"""
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.weather_api_timeout),
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit"""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def fetch_weather(self, city: str) -> WeatherRecord:
        """Fetch current weather for a city and normalize it into a WeatherRecord"""
        self._validate_config()

        if not self.client:
            raise ConfigurationError(
                "Weather client not initialized. Use async context manager."
            )

        logger.info(f"Fetching weather data for city: {city}")

        response = await self._make_api_request(city)
        record = self._parse_response(response, city)

        logger.info(f"Successfully fetched weather data for {city} ({record.city})")
        return record

    async def _make_api_request(self, city: str) -> httpx.Response:
        """Make HTTP request to weather API"""
        params = {
            "q": city,
            "appid": self.settings.openweather_api_key,
            "units": "metric",  # Celsius
        }

        try:
            response = await self.client.get(self.weather_url, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"API request timed out for city: {city}")
            raise APITimeoutError(self.settings.weather_api_timeout) from e
        except httpx.UnsupportedProtocol as e:
            logger.error(f"Invalid weather API URL {self.weather_url}: {e}")
            raise APIRequestError(str(e)) from e
        except httpx.TransportError as e:
            logger.error(f"Weather API unreachable for city {city}: {e}")
            raise ServiceUnreachableError() from e
        except Exception as e:
            logger.error(f"Request error for city {city}: {e}")
            raise APIRequestError(str(e) or type(e).__name__) from e

        if 200 <= response.status_code < 300:
            return response

        status = response.status_code
        logger.warning(f"Weather API returned status {status} for city: {city}")

        if status == 401:
            raise InvalidAPIKeyError()
        if status == 404:
            raise CityNotFoundError(city)
        if status == 429:
            retry_after = response.headers.get("Retry-After")
            raise APIRateLimitError(
                self._error_detail(response),
                int(retry_after) if retry_after and retry_after.isdigit() else None,
                response.text,
            )
        raise ExternalAPIError(self._error_detail(response), status, response.text)

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Best available description of an upstream error response"""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        if response.text:
            return response.text
        return f"HTTP {response.status_code}"

    def _parse_response(self, response: httpx.Response, city: str) -> WeatherRecord:
        """Parse API response into a WeatherRecord"""
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse JSON response for {city}: {e}")
            raise ExternalAPIError(f"invalid JSON response: {e}") from e

        try:
            main = data.get("main") or {}
            weather = (data.get("weather") or [{}])[0]
            wind = data.get("wind") or {}

            return WeatherRecord(
                city=data.get("name"),
                temperature=main.get("temp"),
                description=weather.get("description"),
                humidity=main.get("humidity"),
                wind_speed=wind.get("speed"),
                wind_direction=wind.get("deg"),
                pressure=main.get("pressure"),
                timestamp=datetime.now(timezone.utc),
            )

        except (AttributeError, IndexError, TypeError, PydanticValidationError) as e:
            logger.error(f"Failed to parse weather data for {city}: {e}")
            raise ExternalAPIError(f"unexpected response format: {e}") from e


def create_weather_client(settings: Settings) -> WeatherClient:
    """Factory function to create a weather client"""
    return WeatherClient(settings)
