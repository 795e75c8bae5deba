"""Error taxonomy for geocoding, fetching and aggregation."""


class BloomError(Exception):
    """Base class for all bloom maps errors."""
    pass


class InvalidInput(BloomError):
    """Raised when coordinates are out of range or a required field is empty."""
    pass


class NotFound(BloomError):
    """Raised when a place name has no geocoding match."""
    pass


class NetworkError(BloomError):
    """Raised on transport or parse failures talking to a remote service."""
    pass


class UpstreamError(NetworkError):
    """Raised when the relay reports a failure or returns an unusable payload."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class EmptySeries(BloomError):
    """Raised when every daily value of a series is a sentinel."""
    pass
