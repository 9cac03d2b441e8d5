"""
Error taxonomy for the Catalog API Connector.

Every failure a caller can observe derives from ConnectorError:
- ConfigurationError: credentials or host missing at construction / load time
- TransportError: the HTTP call never completed (DNS, refused, timeout)
- RemoteError: the store answered with something other than a usable 200
- CodecError: a request or response body could not be (de)serialized

Throttling (429) is not an error: the connector waits and retries.
"""

from typing import Optional


class ConnectorError(Exception):
    """Base class for all connector errors."""


class ConfigurationError(ConnectorError):
    """Raised when a connector cannot be built from the given settings."""


class CodecError(ConnectorError):
    """Raised when a body cannot be encoded to or decoded from JSON."""


class TransportError(ConnectorError):
    """The underlying network call could not complete."""

    def __init__(self, message: str, method: Optional[str] = None, url: Optional[str] = None):
        super().__init__(message)
        self.method = method
        self.url = url


class RemoteError(ConnectorError):
    """
    The remote API responded, but not with a decodable 200.

    Keeps the raw response body so callers can inspect the store's own
    error payload.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url


class RetryLimitExceeded(RemoteError):
    """Raised only when a ThrottlePolicy sets max_retries and it runs out."""

    def __init__(self, message: str, attempts: int, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts
