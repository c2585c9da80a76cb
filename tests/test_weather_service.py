from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from weatherlog.config.settings import Settings
from weatherlog.models.weather import WeatherRecord
from weatherlog.providers.database.base import DatabaseProvider
from weatherlog.providers.database.local_db import LocalDatabaseProvider
from weatherlog.services.weather_client import WeatherClient
from weatherlog.services.weather_service import WeatherService, create_weather_service
from weatherlog.utils.exceptions import (
    CityNotFoundError,
    InvalidAPIKeyError,
    ServiceUnreachableError,
    StorageError,
    ValidationError,
)


class TestWeatherService:
    """Test suite for WeatherService"""

    @pytest.fixture
    def mock_settings(self, tmp_path):
        """Create mock settings for testing"""
        return Settings(
            openweather_api_key="test-api-key",
            database_path=str(tmp_path / "weather.db"),
        )

    @pytest.fixture
    def sample_record(self):
        """Create a sample weather record for testing"""
        return WeatherRecord(
            city="Paris",
            temperature=21.3,
            description="clear sky",
            humidity=40,
            wind_speed=2.1,
            wind_direction=90,
            pressure=1017,
            timestamp=datetime.now(timezone.utc),
        )

    @pytest.fixture
    def mock_weather_client(self, sample_record):
        client = AsyncMock(spec=WeatherClient)
        client.fetch_weather.return_value = sample_record
        client.is_configured = True
        return client

    @pytest.fixture
    def history_store(self, mock_settings):
        return LocalDatabaseProvider(mock_settings.database_path)

    @pytest.fixture
    async def weather_service(self, mock_weather_client, history_store, mock_settings):
        """Create WeatherService backed by a temporary SQLite store"""
        service = WeatherService(mock_weather_client, history_store, mock_settings)
        await service.initialize()
        yield service
        await service.cleanup()

    async def test_service_initialization(self, mock_weather_client, mock_settings):
        """Initialization opens the client and creates the schema"""
        store = AsyncMock(spec=DatabaseProvider)
        service = WeatherService(mock_weather_client, store, mock_settings)

        assert not service._initialized

        await service.initialize()
        await service.initialize()

        assert service._initialized
        store.initialize.assert_awaited_once()
        mock_weather_client.__aenter__.assert_awaited_once()

        await service.cleanup()
        mock_weather_client.__aexit__.assert_awaited_once()
        assert not service._initialized

    async def test_get_weather_fetches_and_persists(
        self, weather_service, mock_weather_client, sample_record
    ):
        result = await weather_service.get_weather("  Paris ")

        mock_weather_client.fetch_weather.assert_awaited_once_with("Paris")
        assert result.id is not None
        assert result.model_copy(update={"id": None}) == sample_record
        assert result.is_complete()

    async def test_history_after_fetch(self, weather_service):
        """A fetched record is immediately visible in the history"""
        fetched = await weather_service.get_weather("Paris")

        history = await weather_service.get_weather_history("Paris", 1)

        assert len(history) == 1
        assert history[0].city == fetched.city
        assert history[0].temperature == fetched.temperature
        assert history[0].description == fetched.description

    async def test_history_uses_provider_city_name(
        self, weather_service, mock_weather_client
    ):
        """Records are stored under the provider's name, not the query"""
        mock_weather_client.fetch_weather.return_value = WeatherRecord(
            city="São Paulo",
            temperature=25.0,
            description="few clouds",
            timestamp=datetime.now(timezone.utc),
        )

        await weather_service.get_weather("sao paulo")

        assert await weather_service.get_weather_history("sao paulo") == []
        assert len(await weather_service.get_weather_history("São Paulo")) == 1

    @pytest.mark.parametrize("city", ["", "   ", None])
    async def test_get_weather_invalid_city(
        self, weather_service, mock_weather_client, city
    ):
        """Blank city names fail validation without calling the provider"""
        with pytest.raises(ValidationError, match="City name is required"):
            await weather_service.get_weather(city)

        mock_weather_client.fetch_weather.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            CityNotFoundError("Atlantis"),
            InvalidAPIKeyError(),
            ServiceUnreachableError(),
        ],
    )
    async def test_client_errors_propagate_and_nothing_is_stored(
        self, weather_service, mock_weather_client, error
    ):
        mock_weather_client.fetch_weather.side_effect = error

        with pytest.raises(type(error)) as exc_info:
            await weather_service.get_weather("Atlantis")

        assert exc_info.value is error
        assert await weather_service.get_weather_history("Atlantis") == []

    async def test_storage_failure_fails_the_lookup(
        self, mock_weather_client, mock_settings
    ):
        """A record that cannot be saved is not returned"""
        store = AsyncMock(spec=DatabaseProvider)
        store.insert.side_effect = StorageError("disk I/O error", operation="insert")
        service = WeatherService(mock_weather_client, store, mock_settings)

        with pytest.raises(StorageError, match="disk I/O error"):
            await service.get_weather("Paris")

        mock_weather_client.fetch_weather.assert_awaited_once()

    async def test_history_empty_for_unknown_city(self, weather_service):
        assert await weather_service.get_weather_history("Nowhere") == []
        assert await weather_service.get_weather_history("") == []

    async def test_history_limit_and_order(self, weather_service, history_store):
        base = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        for hours in (3, 0, 4, 1, 2):
            await history_store.insert(
                WeatherRecord(
                    city="Oslo",
                    temperature=float(hours),
                    description="overcast clouds",
                    timestamp=base + timedelta(hours=hours),
                )
            )

        history = await weather_service.get_weather_history("Oslo", 3)

        assert [r.temperature for r in history] == [4.0, 3.0, 2.0]

    async def test_history_default_limit(self, weather_service, history_store):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for minutes in range(12):
            await history_store.insert(
                WeatherRecord(
                    city="Rome",
                    temperature=18.0,
                    description="sunny",
                    timestamp=base + timedelta(minutes=minutes),
                )
            )

        assert len(await weather_service.get_weather_history("Rome")) == 10

    async def test_delete_weather_history(self, weather_service, history_store):
        for _ in range(5):
            await history_store.insert(
                WeatherRecord(
                    city="Berlin",
                    temperature=9.5,
                    description="light rain",
                    timestamp=datetime.now(timezone.utc),
                )
            )

        assert await weather_service.delete_weather_history("Berlin") == 5
        assert await weather_service.get_weather_history("Berlin") == []
        assert await weather_service.delete_weather_history("Berlin") == 0

    async def test_health_check(self, weather_service):
        health = await weather_service.health_check()

        assert health["service"] == "healthy"
        assert health["components"]["database"]["status"] == "healthy"
        assert health["components"]["weather_api"]["status"] == "configured"
        assert health["version"] == "1.0.0"
        assert health["uptime"] >= 0

    async def test_health_check_degraded(self, mock_weather_client, mock_settings):
        store = AsyncMock(spec=DatabaseProvider)
        store.health_check.return_value = False
        mock_weather_client.is_configured = False
        service = WeatherService(mock_weather_client, store, mock_settings)

        health = await service.health_check()

        assert health["service"] == "degraded"
        assert health["components"]["weather_api"]["status"] == "not_configured"
        mock_weather_client.fetch_weather.assert_not_called()

    async def test_create_weather_service(self, mock_settings):
        service = await create_weather_service(mock_settings)
        try:
            assert service._initialized
            assert isinstance(service._weather_client, WeatherClient)
            assert isinstance(service._history_store, LocalDatabaseProvider)
            assert service._history_store.db_path == mock_settings.database_path
        finally:
            await service.cleanup()
