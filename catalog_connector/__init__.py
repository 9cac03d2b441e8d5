"""Catalog API Connector"""

from .codec import Codec, JsonCodec
from .config_schema import AccountCredentials, ConnectorConfig, ThrottlePolicy
from .errors import (
    CodecError,
    ConfigurationError,
    ConnectorError,
    RemoteError,
    RetryLimitExceeded,
    TransportError,
)
from .runtime import (
    Connector,
    OutcomeKind,
    RequestDescriptor,
    ResponseOutcome,
    classify_response,
    normalize_endpoint,
)

__all__ = [
    "AccountCredentials",
    "ConnectorConfig",
    "ThrottlePolicy",
    "Codec",
    "JsonCodec",
    "Connector",
    "RequestDescriptor",
    "ResponseOutcome",
    "OutcomeKind",
    "classify_response",
    "normalize_endpoint",
    "ConnectorError",
    "ConfigurationError",
    "TransportError",
    "RemoteError",
    "RetryLimitExceeded",
    "CodecError",
]
