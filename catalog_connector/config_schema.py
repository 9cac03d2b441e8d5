"""
ConnectorConfig Schema - Account settings for the Catalog API Connector

Design decisions:
1. One config per merchant account (no process-wide credentials)
2. Credentials kept in a frozen dataclass, never mutated after construction
3. Throttle behaviour defaults to the store's contract: wait X-Retry-After
   plus a 2 second margin, forever. Caps and backoff growth are opt-in.
4. Loadable from JSON, YAML or the environment
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import json
import os

import yaml

from .errors import ConfigurationError


DEFAULT_HOST = "https://api.bigcommerce.com"

# Environment variables read by ConnectorConfig.from_env()
ENV_STORE_HASH = "CATALOG_STORE_HASH"
ENV_OAUTH_TOKEN = "CATALOG_OAUTH_TOKEN"
ENV_CLIENT_ID = "CATALOG_CLIENT_ID"
ENV_HOST = "CATALOG_API_HOST"


def _number(data: dict, key: str, default, integer: bool = False, nullable: bool = False):
    """Read a numeric setting, rejecting strings, booleans and misplaced nulls."""
    value = data.get(key, default)
    if value is None and nullable:
        return None
    allowed = int if integer else (int, float)
    if isinstance(value, bool) or not isinstance(value, allowed):
        kind = "an integer" if integer else "a number"
        raise ConfigurationError(f"Connector config '{key}' must be {kind}, got {value!r}")
    return value


@dataclass(frozen=True)
class AccountCredentials:
    """Identifies and authorizes every request for one merchant account."""
    store_hash: str
    oauth_token: str
    client_id: str


@dataclass
class ThrottlePolicy:
    """How to wait out a 429 before retrying."""
    margin_seconds: float = 2.0  # Added on top of X-Retry-After
    max_retries: Optional[int] = None  # None = retry until the store lets us through
    backoff_factor: float = 1.0  # 1.0 = fixed interval; >1 grows the wait per retry
    max_delay: Optional[float] = None  # Upper bound on a single wait

    def delay_for(self, retry_after: float, attempt: int) -> float:
        """Seconds to wait before retry number `attempt` (0-based)."""
        delay = (retry_after + self.margin_seconds) * (self.backoff_factor ** attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def allows_retry(self, attempt: int) -> bool:
        if self.max_retries is None:
            return True
        return attempt < self.max_retries


@dataclass
class ConnectorConfig:
    """
    Everything needed to build a Connector for one store.

    Passed explicitly to Connector.from_config() at startup.
    """
    store_hash: str
    oauth_token: str
    client_id: str
    host: str = DEFAULT_HOST

    timeout_seconds: float = 30
    throttle: ThrottlePolicy = field(default_factory=ThrottlePolicy)

    @property
    def credentials(self) -> AccountCredentials:
        return AccountCredentials(
            store_hash=self.store_hash,
            oauth_token=self.oauth_token,
            client_id=self.client_id,
        )

    def to_dict(self) -> dict:
        """Serialize to JSON-compatible dict."""
        return {
            "store_hash": self.store_hash,
            "oauth_token": self.oauth_token,
            "client_id": self.client_id,
            "host": self.host,
            "timeout_seconds": self.timeout_seconds,
            "throttle": {
                "margin_seconds": self.throttle.margin_seconds,
                "max_retries": self.throttle.max_retries,
                "backoff_factor": self.throttle.backoff_factor,
                "max_delay": self.throttle.max_delay,
            },
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectorConfig":
        """Deserialize from JSON-compatible dict."""
        if not isinstance(data, dict):
            raise ConfigurationError("Connector config must be a mapping")

        missing = [key for key in ("store_hash", "oauth_token", "client_id") if not data.get(key)]
        if missing:
            raise ConfigurationError(f"Connector config is missing: {', '.join(missing)}")

        throttle = ThrottlePolicy()
        raw_throttle = data.get("throttle")
        if raw_throttle is not None:
            if not isinstance(raw_throttle, dict):
                raise ConfigurationError("Connector config 'throttle' must be a mapping")
            throttle = ThrottlePolicy(
                margin_seconds=_number(raw_throttle, "margin_seconds", 2.0),
                max_retries=_number(raw_throttle, "max_retries", None, integer=True, nullable=True),
                backoff_factor=_number(raw_throttle, "backoff_factor", 1.0),
                max_delay=_number(raw_throttle, "max_delay", None, nullable=True),
            )

        return cls(
            store_hash=data["store_hash"],
            oauth_token=data["oauth_token"],
            client_id=data["client_id"],
            host=data.get("host", DEFAULT_HOST),
            timeout_seconds=_number(data, "timeout_seconds", 30, nullable=True),
            throttle=throttle,
        )

    @classmethod
    def from_json_file(cls, path: str) -> "ConnectorConfig":
        """Load config from JSON file."""
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_yaml_file(cls, path: str) -> "ConnectorConfig":
        """Load config from YAML file."""
        with open(path, "r") as f:
            return cls.from_dict(yaml.safe_load(f))

    @classmethod
    def from_file(cls, path: str) -> "ConnectorConfig":
        """Load config from a .json, .yaml or .yml file."""
        suffix = Path(path).suffix.lower()
        if suffix in (".yaml", ".yml"):
            return cls.from_yaml_file(path)
        if suffix == ".json":
            return cls.from_json_file(path)
        raise ConfigurationError(f"Unsupported config file type: {path}")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ConnectorConfig":
        """
        Build a config from environment variables.

        Reads CATALOG_STORE_HASH, CATALOG_OAUTH_TOKEN, CATALOG_CLIENT_ID and
        (optionally) CATALOG_API_HOST.
        """
        env = os.environ if environ is None else environ
        return cls.from_dict({
            "store_hash": env.get(ENV_STORE_HASH),
            "oauth_token": env.get(ENV_OAUTH_TOKEN),
            "client_id": env.get(ENV_CLIENT_ID),
            "host": env.get(ENV_HOST) or DEFAULT_HOST,
        })

    def to_json_file(self, path: str) -> None:
        """Save config to JSON file."""
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
