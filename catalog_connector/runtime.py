"""
Runtime Connector - Executes catalog API calls for one store

This is the core engine that:
1. Holds the account credentials and the store's catalog base URL
2. Builds the HTTP request (auth headers, JSON body)
3. Makes the call and classifies the response
4. Waits out rate limiting (429) and retries the identical request

Design decisions:
- Uses httpx.AsyncClient, so a throttle wait never blocks the event loop
- Success is status == 200 exactly; 201/204 are reported as RemoteError
- Throttled requests retry until the store accepts them unless the
  ThrottlePolicy opts into a cap
- No errors are logged here; they are raised to the caller
"""

import asyncio
import math
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

import httpx

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

logger = logging.getLogger(__name__)

API_PATH = "/v3/catalog"

SUCCESS_STATUS = 200
THROTTLED_STATUS = 429
RETRY_AFTER_HEADER = "X-Retry-After"

METHODS = ("GET", "PUT", "POST", "DELETE")
BODY_METHODS = ("PUT", "POST")


def normalize_endpoint(endpoint: str) -> str:
    """
    Make an endpoint relative to the catalog base start with "/".

    Examples:
        - "products" -> "/products"
        - "/products" -> "/products"
    """
    if not endpoint.startswith("/"):
        return "/" + endpoint
    return endpoint


def parse_retry_after(headers: httpx.Headers) -> float:
    """Seconds the store asked us to wait. Missing or garbage means 0."""
    value = headers.get(RETRY_AFTER_HEADER)
    if value is None:
        return 0.0
    try:
        seconds = float(value.strip())
    except ValueError:
        seconds = math.nan
    # inf/nan would park the retry timer forever
    if not math.isfinite(seconds):
        logger.debug(f"Ignoring unparsable {RETRY_AFTER_HEADER} header: {value!r}")
        return 0.0
    return max(0.0, seconds)


@dataclass(frozen=True)
class RequestDescriptor:
    """One outgoing HTTP call. Built fresh for every attempt."""
    url: str
    method: str
    headers: dict = field(default_factory=dict)
    body: Optional[str] = None


class OutcomeKind(Enum):
    """Classification of a finished (or failed) HTTP call."""
    SUCCESS = "success"
    THROTTLED = "throttled"
    FAILURE = "failure"


@dataclass
class ResponseOutcome:
    """Result of classifying one attempt; drives retry-or-return."""
    kind: OutcomeKind
    value: Any = None  # Decoded payload on SUCCESS
    retry_after: float = 0.0  # Server-mandated wait on THROTTLED (margin not included)
    error: Optional[ConnectorError] = None  # TransportError or RemoteError on FAILURE

    @classmethod
    def success(cls, value: Any) -> "ResponseOutcome":
        return cls(kind=OutcomeKind.SUCCESS, value=value)

    @classmethod
    def throttled(cls, retry_after: float) -> "ResponseOutcome":
        return cls(kind=OutcomeKind.THROTTLED, retry_after=retry_after)

    @classmethod
    def failure(cls, error: ConnectorError) -> "ResponseOutcome":
        return cls(kind=OutcomeKind.FAILURE, error=error)


def classify_response(response: httpx.Response, codec: Codec, url: Optional[str] = None) -> ResponseOutcome:
    """Turn a completed HTTP response into a ResponseOutcome."""
    status = response.status_code

    if status == THROTTLED_STATUS:
        return ResponseOutcome.throttled(parse_retry_after(response.headers))

    # Strict equality: other 2xx codes are failures too
    if status != SUCCESS_STATUS:
        return ResponseOutcome.failure(RemoteError(
            f"API returned status {status}: {response.text}",
            status_code=status,
            body=response.text,
            url=url,
        ))

    try:
        value = codec.decode(response.text)
    except CodecError as e:
        error = RemoteError(
            f"API returned a malformed success payload: {e}",
            status_code=status,
            body=response.text,
            url=url,
        )
        error.__cause__ = e
        return ResponseOutcome.failure(error)

    return ResponseOutcome.success(value)


class Connector:
    """
    Performs authenticated CRUD calls against one store's catalog API.

    Every verb returns a coroutine that resolves to the decoded JSON payload
    or raises TransportError / RemoteError. Rate-limited calls are retried
    transparently and never surface to the caller.
    """

    def __init__(
        self,
        credentials: AccountCredentials,
        host: str,
        *,
        throttle: Optional[ThrottlePolicy] = None,
        timeout_seconds: float = 30,
        client: Optional[httpx.AsyncClient] = None,
        codec: Optional[Codec] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        """
        Initialize the connector. No network activity happens here.

        Args:
            credentials: Store hash, OAuth token and app client id
            host: API host URL (e.g. "https://api.bigcommerce.com")
            throttle: How to wait out 429 responses (defaults to retry forever)
            timeout_seconds: Transport timeout for the client we create
            client: Optional shared httpx.AsyncClient (left open by close())
            codec: Body codec (defaults to JsonCodec)
            sleep: Awaitable timer used between throttled attempts
        """
        if credentials is None:
            raise ConfigurationError("Connector needs account credentials")
        if not credentials.store_hash:
            raise ConfigurationError("Connector needs store hash (store_hash)")
        if not credentials.oauth_token:
            raise ConfigurationError("Connector needs store OAuth token (oauth_token)")
        if not credentials.client_id:
            raise ConfigurationError("Connector needs app client id (client_id)")
        if not host:
            raise ConfigurationError("Connector needs API host URL (host)")

        self._credentials = credentials
        self._base_url = f"{host.rstrip('/')}/stores/{credentials.store_hash}{API_PATH}"

        self.throttle = throttle or ThrottlePolicy()
        self.codec = codec or JsonCodec()
        self._sleep = sleep or asyncio.sleep
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @classmethod
    def from_config(cls, config: ConnectorConfig, **kwargs) -> "Connector":
        """Build a connector from an explicit per-account config."""
        return cls(
            config.credentials,
            config.host,
            throttle=config.throttle,
            timeout_seconds=config.timeout_seconds,
            **kwargs,
        )

    @property
    def credentials(self) -> AccountCredentials:
        return self._credentials

    @property
    def base_url(self) -> str:
        """The store's catalog API URL, fixed at construction."""
        return self._base_url

    def __repr__(self) -> str:
        return f"Connector(base_url={self._base_url!r})"

    def _build_headers(self) -> dict:
        """Headers shared by every verb."""
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Auth-Client": self._credentials.client_id,
            "X-Auth-Token": self._credentials.oauth_token,
        }

    def build_request(self, method: str, endpoint: str, data: Any = None) -> RequestDescriptor:
        """
        Describe one HTTP call. Pure apart from encoding the body.

        GET and DELETE never carry a body, even if one is passed.
        """
        if method not in METHODS:
            raise ValueError(f"Unsupported method: {method}")

        body = None
        if method in BODY_METHODS and data is not None:
            body = self.codec.encode(data)

        return RequestDescriptor(
            url=self._base_url + normalize_endpoint(endpoint),
            method=method,
            headers=self._build_headers(),
            body=body,
        )

    async def _send(self, request: RequestDescriptor) -> ResponseOutcome:
        """Execute a request and classify what came back."""
        try:
            response = await self.client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.RequestError as e:
            error = TransportError(
                f"Request failed: {e}",
                method=request.method,
                url=request.url,
            )
            error.__cause__ = e
            return ResponseOutcome.failure(error)

        return classify_response(response, self.codec, url=request.url)

    async def _execute(self, method: str, endpoint: str, data: Any = None) -> Any:
        """Run one logical call, retrying it for as long as it is throttled."""
        attempt = 0

        while True:
            request = self.build_request(method, endpoint, data)
            logger.debug(f"Attempt {attempt + 1}: {request.method} {request.url}")

            outcome = await self._send(request)

            if outcome.kind is OutcomeKind.SUCCESS:
                return outcome.value
            if outcome.kind is OutcomeKind.FAILURE:
                raise outcome.error

            if not self.throttle.allows_retry(attempt):
                raise RetryLimitExceeded(
                    f"Still rate limited after {attempt + 1} attempts",
                    attempts=attempt + 1,
                    status_code=THROTTLED_STATUS,
                    url=request.url,
                )

            delay = self.throttle.delay_for(outcome.retry_after, attempt)
            logger.debug(f"Rate limited on {request.method} {request.url}, retrying in {delay:.1f}s")
            await self._sleep(delay)
            attempt += 1

    async def fetch(self, endpoint: str) -> Any:
        """GET a catalog resource, e.g. fetch("/products/1")."""
        return await self._execute("GET", endpoint)

    async def replace(self, endpoint: str, data: Any) -> Any:
        """PUT `data` (any JSON-serializable object) to a catalog resource."""
        return await self._execute("PUT", endpoint, data)

    async def create(self, endpoint: str, data: Any) -> Any:
        """POST `data` to a catalog collection."""
        return await self._execute("POST", endpoint, data)

    async def remove(self, endpoint: str) -> Any:
        """DELETE a catalog resource."""
        return await self._execute("DELETE", endpoint)

    async def close(self):
        """Close the HTTP client if this connector created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
