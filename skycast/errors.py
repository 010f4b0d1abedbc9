"""
Error taxonomy.

ClientError subclasses are *returned* as the second half of a `(value, error)`
tuple by the HTTP client and the services. InvalidTransition and
ConfigurationError are raised: they signal programming or setup mistakes.
"""


class ClientError(Exception):
    """Base class for recoverable request failures."""

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class TransportError(ClientError):
    """The request never produced an HTTP response (DNS, connection, timeout)."""


class RetryExhausted(ClientError):
    def __init__(self, attempts: int):
        super().__init__(f"Rate limited on all {attempts} attempts")
        self.attempts = attempts


class ServerError(ClientError):
    def __init__(self, status: int, body: str = ""):
        super().__init__(f"HTTP {status}")
        self.status = status
        self.body = body


class MalformedResponse(ClientError):
    """Body could not be decoded into the expected shape."""


class TimeoutExceeded(ClientError):
    """The absolute deadline for a logical request elapsed."""


class WeatherUnavailable(ClientError):
    """Weather lookup failed for any reason."""


class InvalidCoordinates(ClientError):
    """Coordinate input is present but not a usable number."""


class InvalidTransition(RuntimeError):
    """Operation invoked from a view that does not allow it."""


class ConfigurationError(RuntimeError):
    """Missing or malformed settings."""
