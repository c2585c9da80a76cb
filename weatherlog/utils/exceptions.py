from typing import Any


class WeatherAPIError(Exception):
    """Base exception for weather log errors"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = 500
        self.error_code = "WEATHER_API_ERROR"


class ValidationError(WeatherAPIError):
    """Exception raised when caller input is invalid"""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
        self.status_code = 400
        self.error_code = "VALIDATION_ERROR"


class ConfigurationError(WeatherAPIError):
    """Exception raised when configuration is invalid"""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details)
        self.error_code = "CONFIGURATION_ERROR"


class CityNotFoundError(WeatherAPIError):
    """Exception raised when the weather provider does not know the city"""

    def __init__(self, city: str):
        super().__init__(
            f"City '{city}' not found. Please check the city name and try again."
        )
        self.city = city
        self.error_code = "CITY_NOT_FOUND"


class InvalidAPIKeyError(WeatherAPIError):
    """Exception raised when the weather provider rejects the API key"""

    def __init__(self):
        super().__init__(
            "Invalid API key. Please check your OpenWeather API key configuration."
        )
        self.error_code = "INVALID_API_KEY"


class ExternalAPIError(WeatherAPIError):
    """Exception raised when external weather API returns an error response"""

    def __init__(
        self,
        detail: str,
        upstream_status: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(f"Weather API error: {detail}")
        self.detail = detail
        self.upstream_status = upstream_status
        self.response_body = response_body
        self.error_code = "EXTERNAL_API_ERROR"


class APIRateLimitError(ExternalAPIError):
    """Exception raised when API rate limit is exceeded"""

    def __init__(
        self,
        detail: str = "rate limit exceeded",
        retry_after: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(detail, 429, response_body)
        self.retry_after = retry_after
        self.error_code = "RATE_LIMITED"


class ServiceUnreachableError(WeatherAPIError):
    """Exception raised when no response is received from the weather API"""

    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "Unable to reach weather service. Please check your internet connection."
        )
        self.error_code = "SERVICE_UNREACHABLE"


class APITimeoutError(ServiceUnreachableError):
    """Exception raised when API request times out"""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            "Unable to reach weather service. "
            f"Request timed out after {timeout_seconds} seconds."
        )
        self.timeout_seconds = timeout_seconds
        self.error_code = "API_TIMEOUT"


class APIRequestError(WeatherAPIError):
    """Exception raised when the request could not be built or sent"""

    def __init__(self, detail: str):
        super().__init__(f"Weather service error: {detail}")
        self.detail = detail
        self.error_code = "REQUEST_ERROR"


class StorageError(WeatherAPIError):
    """Exception raised when history storage operations fail"""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.error_code = "STORAGE_ERROR"
