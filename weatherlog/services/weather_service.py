"""
Weather service orchestrating the weather client and the history store.

A fresh lookup is one sequential chain: validate the city, fetch from the
upstream provider, append the record to the history store, return the stored
record. History reads and deletes go to the store only. Errors from the client
and the store propagate unchanged; translating them into HTTP responses is the
API layer's job.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from weatherlog.config.settings import Settings
from weatherlog.models.weather import WeatherRecord
from weatherlog.providers.database.base import DEFAULT_HISTORY_LIMIT, DatabaseProvider
from weatherlog.providers.database.factory import create_database_provider
from weatherlog.services.weather_client import WeatherClient, create_weather_client
from weatherlog.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)


class WeatherService:
    """
    Weather lookups with a persisted observation log.

    The weather client and the history store are injected so that either can
    be replaced (for example by a fake store in tests).
    """

    def __init__(
        self,
        weather_client: WeatherClient,
        history_store: DatabaseProvider,
        settings: Settings | None = None,
    ):
        self._weather_client = weather_client
        self._history_store = history_store
        self.settings = settings or weather_client.settings
        self._started_at = time.monotonic()
        self._initialized = False

    async def initialize(self) -> None:
        """Open the HTTP client and create the history schema"""
        if self._initialized:
            return

        await self._history_store.initialize()
        await self._weather_client.__aenter__()

        self._initialized = True
        logger.info("Weather service initialized successfully")

    async def cleanup(self) -> None:
        """Cleanup resources"""
        await self._weather_client.__aexit__(None, None, None)
        self._initialized = False
        logger.info("Weather service cleanup completed")

    async def get_weather(self, city: str) -> WeatherRecord:
        """
        Fetch current weather for a city and append it to the history.

        Raises:
            ValidationError: city is missing or blank; the provider is not called
            WeatherAPIError: any client or store failure, unchanged
        """
        if not city or not city.strip():
            raise ValidationError("City name is required", field="city")

        city = city.strip()
        logger.info(f"Processing weather request for city: {city}")

        record = await self._weather_client.fetch_weather(city)
        stored = await self._history_store.insert(record)

        logger.info(f"Weather record {stored.id} saved for {stored.city}")
        return stored

    async def get_weather_history(
        self, city: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[WeatherRecord]:
        """Most recent stored records for a city, newest first"""
        return await self._history_store.find_by_city(city, limit)

    async def delete_weather_history(self, city: str) -> int:
        """Delete every stored record for a city and return how many went"""
        deleted = await self._history_store.delete_by_city(city)
        logger.info(f"Deleted {deleted} weather records for {city}")
        return deleted

    async def health_check(self) -> dict[str, Any]:
        """Report component status without calling the upstream provider"""
        database_healthy = await self._history_store.health_check()
        api_key_configured = self._weather_client.is_configured

        return {
            "message": "Weather API is running",
            "version": self.settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - self._started_at, 3),
            "environment": self.settings.environment,
            "service": "healthy" if database_healthy else "degraded",
            "components": {
                "database": {"status": "healthy" if database_healthy else "unhealthy"},
                "weather_api": {
                    "status": "configured" if api_key_configured else "not_configured"
                },
            },
        }


async def create_weather_service(settings: Settings) -> WeatherService:
    """
    Factory function to create and initialize a weather service.

    Usage:
        service = await create_weather_service(settings)
        try:
            record = await service.get_weather("London")
        finally:
            await service.cleanup()
    """
    service = WeatherService(
        create_weather_client(settings),
        create_database_provider(settings),
        settings,
    )
    await service.initialize()
    return service
