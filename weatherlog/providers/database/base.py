from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from weatherlog.models.weather import WeatherRecord

DEFAULT_HISTORY_LIMIT = 10


class DatabaseProvider(ABC):
    """Abstract base class for weather history stores"""

    @abstractmethod
    async def initialize(self) -> None:
        """Create the schema if it does not exist yet"""
        pass

    @abstractmethod
    async def insert(self, record: "WeatherRecord") -> "WeatherRecord":
        """
        Persist a weather record

        Args:
            record: Record to store; any id it carries is ignored

        Returns:
            A copy of the record with the store-assigned id
        """
        pass

    @abstractmethod
    async def find_by_city(
        self, city: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list["WeatherRecord"]:
        """
        Get stored records for a city

        Args:
            city: Exact, case-sensitive city name
            limit: Maximum number of records to return

        Returns:
            Records ordered by timestamp, most recent first
        """
        pass

    @abstractmethod
    async def delete_by_city(self, city: str) -> int:
        """
        Remove every stored record for a city

        Args:
            city: Exact, case-sensitive city name

        Returns:
            Number of records deleted
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the store is healthy and accessible

        Returns:
            True if healthy, False otherwise
        """
        pass
