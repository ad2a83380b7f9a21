"""Exception types shared by the upstream clients and the aggregation layer."""


class ApertureError(Exception):
    """Base class for forecast-service errors."""


class BaseProviderError(ApertureError):
    """The required base forecast could not be fetched or understood."""


class ProviderPayloadError(ApertureError):
    """An upstream payload did not have the shape its adapter expects."""
