from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from weatherlog.models.weather import WeatherRecord
from weatherlog.utils.exceptions import StorageError

from .base import DEFAULT_HISTORY_LIMIT, DatabaseProvider

# largest value SQLite can bind as an INTEGER
SQLITE_MAX_INTEGER = 2**63 - 1

_COLUMNS = (
    "id, city, temperature, description, humidity, "
    "wind_speed, wind_direction, pressure, timestamp"
)


def _format_timestamp(value: datetime) -> str:
    # fixed width UTC text so ORDER BY on the column follows time order
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_record(row: aiosqlite.Row) -> WeatherRecord:
    return WeatherRecord(
        id=row["id"],
        city=row["city"],
        temperature=row["temperature"],
        description=row["description"],
        humidity=row["humidity"],
        wind_speed=row["wind_speed"],
        wind_direction=row["wind_direction"],
        pressure=row["pressure"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )


class LocalDatabaseProvider(DatabaseProvider):
    """SQLite implementation of the weather history store"""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._tables_ready = False
        self.logger = structlog.get_logger(__name__).bind(
            provider="local_db", db_path=self.db_path
        )

    def _ensure_db_directory(self):
        """Ensure the database directory exists"""
        db_dir = Path(self.db_path).parent
        db_dir.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> aiosqlite.Connection:
        """Get async SQLite connection"""
        return aiosqlite.connect(self.db_path)

    async def initialize(self) -> None:
        """Initialize database tables if they don't exist"""
        if self._tables_ready:
            return

        try:
            self._ensure_db_directory()
            async with self._get_connection() as db:
                await db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS weather_log (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        city TEXT NOT NULL,
                        temperature REAL NOT NULL,
                        description TEXT NOT NULL,
                        humidity REAL,
                        wind_speed REAL,
                        wind_direction REAL,
                        pressure REAL,
                        timestamp TEXT NOT NULL
                    )
                    """
                )
                await db.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_city_timestamp ON weather_log(city, timestamp DESC)
                    """
                )
                await db.commit()
        except Exception as e:
            self.logger.error("schema_init_failed", error=str(e))
            raise StorageError(
                f"Failed to initialize SQLite database: {str(e)}", operation="initialize"
            ) from e

        self._tables_ready = True
        self.logger.info("schema_ready")

    async def insert(self, record: WeatherRecord) -> WeatherRecord:
        """Insert a weather record and return it with its new id"""
        await self.initialize()

        try:
            async with self._get_connection() as db:
                cursor = await db.execute(
                    """
                    INSERT INTO weather_log (
                        city, temperature, description, humidity,
                        wind_speed, wind_direction, pressure, timestamp
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.city,
                        record.temperature,
                        record.description,
                        record.humidity,
                        record.wind_speed,
                        record.wind_direction,
                        record.pressure,
                        _format_timestamp(record.timestamp),
                    ),
                )
                await db.commit()
                record_id = cursor.lastrowid

        except Exception as e:
            self.logger.error("sqlite_insert_failed", city=record.city, error=str(e))
            raise StorageError(
                f"Failed to save weather record: {str(e)}", operation="insert"
            ) from e

        self.logger.info("weather_record_saved", record_id=record_id, city=record.city)
        return record.model_copy(update={"id": record_id})

    async def find_by_city(
        self, city: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[WeatherRecord]:
        """Get the most recent records for a city, newest first"""
        limit = min(max(limit, 0), SQLITE_MAX_INTEGER)
        self.logger.info("getting_weather_history", city=city, limit=limit)

        await self.initialize()

        try:
            async with self._get_connection() as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM weather_log
                    WHERE city = ?
                    ORDER BY timestamp DESC, id DESC
                    LIMIT ?
                    """,
                    (city, limit),
                )
                rows = await cursor.fetchall()
                records = [_row_to_record(row) for row in rows]

        except Exception as e:
            self.logger.error("get_weather_history_failed", city=city, error=str(e))
            raise StorageError(
                f"Failed to read weather history: {str(e)}", operation="find_by_city"
            ) from e

        self.logger.info("weather_history_retrieved", city=city, count=len(records))
        return records

    async def delete_by_city(self, city: str) -> int:
        """Remove all records for a city"""
        self.logger.info("deleting_weather_history", city=city)

        await self.initialize()

        try:
            async with self._get_connection() as db:
                cursor = await db.execute(
                    "DELETE FROM weather_log WHERE city = ?", (city,)
                )
                deleted_count = max(cursor.rowcount or 0, 0)
                await db.commit()

        except Exception as e:
            self.logger.error("delete_weather_history_failed", city=city, error=str(e))
            raise StorageError(
                f"Failed to delete weather history: {str(e)}", operation="delete_by_city"
            ) from e

        self.logger.info("weather_history_deleted", city=city, deleted_count=deleted_count)
        return deleted_count

    async def health_check(self) -> bool:
        """Check if SQLite database is accessible"""
        try:
            await self.initialize()
            async with self._get_connection() as db:
                cursor = await db.execute("SELECT 1")
                result = await cursor.fetchone()
                is_healthy = result is not None

                self.logger.info("health_check_completed", is_healthy=is_healthy)
                return is_healthy

        except Exception as e:
            self.logger.error("health_check_failed", error=str(e))
            return False

    async def get_database_info(self) -> dict:
        """Get database information (utility method)"""
        await self.initialize()

        try:
            async with self._get_connection() as db:
                cursor = await db.execute("SELECT COUNT(*) FROM weather_log")
                total_records = (await cursor.fetchone())[0]

            db_file = Path(self.db_path)
            file_size = db_file.stat().st_size if db_file.exists() else 0

            return {
                "database_path": str(self.db_path),
                "total_records": total_records,
                "file_size_bytes": file_size,
                "file_size_mb": round(file_size / (1024 * 1024), 2),
            }

        except Exception as e:
            raise StorageError(
                f"Failed to get database info: {str(e)}", operation="info"
            ) from e
