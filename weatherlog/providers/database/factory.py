"""Database provider factory for creating the weather history store"""

from weatherlog.config.settings import Settings
from weatherlog.utils.exceptions import ConfigurationError

from .base import DatabaseProvider
from .local_db import LocalDatabaseProvider


def create_database_provider(settings: Settings) -> DatabaseProvider:
    """Create the history store described by the settings"""
    if not settings.database_path:
        raise ConfigurationError("database_path is required for the weather log")

    return LocalDatabaseProvider(settings.database_path)
