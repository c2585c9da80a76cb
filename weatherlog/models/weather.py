from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WeatherRecord(BaseModel):
    """One normalized weather observation for one city"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: int | None = Field(None, description="Row id, assigned by the store")
    city: str = Field(..., min_length=1, description="City name from the provider")
    temperature: float = Field(..., description="Temperature in Celsius")
    description: str = Field(..., min_length=1, description="Weather description")
    humidity: float | None = Field(
        None, ge=0, le=100, description="Humidity percentage"
    )
    wind_speed: float | None = Field(None, ge=0, description="Wind speed in m/s")
    wind_direction: float | None = Field(
        None, ge=0, le=360, description="Wind direction in degrees"
    )
    pressure: float | None = Field(None, description="Atmospheric pressure in hPa")
    timestamp: datetime = Field(..., description="When the data was fetched")

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # naive values are taken to be UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def is_complete(self) -> bool:
        """True when city, temperature, description and timestamp are all present"""
        return bool(
            self.city
            and self.temperature is not None
            and self.description
            and self.timestamp
        )

    def to_response(self) -> dict[str, Any]:
        """Serialize with camelCase keys, an ISO-8601 timestamp and a ``conditions`` alias"""
        body = self.model_dump(mode="json", by_alias=True)
        body["conditions"] = self.description
        return body

    def __str__(self) -> str:
        return f"Weather in {self.city}: {self.temperature}°C, {self.description}"
