"""Custom exceptions for the holder concentration tool."""


class HolderHHIError(Exception):
    """Base exception for all holder concentration tool errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DataSourceError(HolderHHIError):
    """Raised when a data source fails or returns an error envelope."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(DataSourceError):
    """Raised when API rate limit is hit."""

    def __init__(
        self,
        source: str,
        retry_after_seconds: int | None = None,
        endpoint: str | None = None,
    ):
        message = "Rate limit exceeded"
        if retry_after_seconds:
            message += f", retry after {retry_after_seconds}s"
        super().__init__(source, message, endpoint=endpoint, status_code=429)
        self.retry_after_seconds = retry_after_seconds


class ComputationError(HolderHHIError):
    """Raised when aggregation or HHI computation cannot be completed.

    This is the only failure that reaches the caller; an empty holder set is
    a valid result, not an error.
    """

    def __init__(self, stage: str, message: str, value: str | None = None):
        full_message = f"HHI calculation failed [{stage}]: {message}"
        super().__init__(full_message, {"stage": stage, "value": value})
        self.stage = stage
        self.value = value


class ConfigurationError(HolderHHIError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
