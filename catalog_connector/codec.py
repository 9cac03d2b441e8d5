"""
Pluggable body codec.

The connector never calls json directly: it goes through an object with
encode()/decode(), so classification and retry logic can be exercised with
any codec (including a counting fake in tests).
"""

import json
from typing import Any, Protocol

from .errors import CodecError


class Codec(Protocol):
    """Anything that turns objects into request text and response text back into objects."""

    def encode(self, data: Any) -> str: ...

    def decode(self, text: str) -> Any: ...


class JsonCodec:
    """Default codec: compact JSON, like the store API expects."""

    def encode(self, data: Any) -> str:
        try:
            return json.dumps(data, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise CodecError(f"Could not encode request body: {e}") from e

    def decode(self, text: str) -> Any:
        try:
            return json.loads(text)
        except ValueError as e:
            raise CodecError(f"Could not decode response body: {e}") from e
