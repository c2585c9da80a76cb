"""Persistence of the weather observation log"""

from .base import DEFAULT_HISTORY_LIMIT, DatabaseProvider
from .factory import create_database_provider
from .local_db import LocalDatabaseProvider

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DatabaseProvider",
    "LocalDatabaseProvider",
    "create_database_provider",
]
