"""Domain errors and failure typing."""


class RoadworksError(Exception):
    """Base class for roadworks failures."""

    error_code = "ROADWORKS_ERROR"


class ConfigurationError(RoadworksError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class StageError(RoadworksError):
    """Raised for stage failures that the caller decides how to absorb."""

    error_code = "STAGE_ERROR"


class FetchError(StageError):
    """Raised for network failures and non-success HTTP statuses."""

    error_code = "FETCH_ERROR"


class RetryableFetchError(FetchError):
    pass


class MalformedDataError(StageError):
    """Raised when a payload breaks its structural assumptions."""

    error_code = "MALFORMED_DATA"


class GeometryError(RoadworksError):
    """Raised when a caller passes geometry that breaks the input contract."""

    error_code = "GEOMETRY_ERROR"
