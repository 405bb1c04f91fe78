"""
HTTP transport for the Featurebase API.

FeaturebaseClient wraps a single httpx.AsyncClient and exposes two calls:
- send(): authenticated request against the REST origin (config.base_url)
- get_public(): unauthenticated GET against the organisation's public origin

Both decode JSON on success and raise on anything else:
- Non-2xx responses raise TransportError with the status and a best-effort
  detail (re-serialized JSON body, else raw text, else the reason phrase)
- 2xx responses that are not JSON raise InvalidResponseBodyError
- Public calls raise ConfigurationMissingError before touching the network
  when no public origin is configured

There are no retries and no backoff: a failed call surfaces immediately.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from featurebase_mcp.config import ENV_ORG_URL
from featurebase_mcp.errors import (
    ConfigurationMissingError,
    InvalidResponseBodyError,
    TransportError,
)
from featurebase_mcp.params import build_url
from featurebase_mcp.schema import ServerConfig

logger = logging.getLogger(__name__)

# Characters of an undecodable body kept for diagnostics
BODY_EXCERPT_CHARS = 200


def error_detail(response: httpx.Response) -> str:
    """
    Extract a best-effort message from a failed response.

    Args:
        response: A non-2xx response whose body has been read

    Returns:
        Compact JSON if the body parses, else the raw body if non-empty,
        else the standard reason phrase for the status code
    """
    body = response.text
    try:
        return json.dumps(json.loads(body), separators=(",", ":"), ensure_ascii=False)
    except ValueError:
        return body or response.reason_phrase


def decode_json(response: httpx.Response) -> Any:
    """
    Decode a successful response body.

    Raises:
        InvalidResponseBodyError: If the body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise InvalidResponseBodyError(
            status_code=response.status_code,
            url=str(response.request.url),
            body_excerpt=response.text[:BODY_EXCERPT_CHARS],
        ) from e


class FeaturebaseClient:
    """
    Async client for the Featurebase REST API.

    Example:
        async with FeaturebaseClient(config) as client:
            posts = await client.send("GET", "/posts", params={"q": "dark mode"})
    """

    def __init__(
        self,
        config: ServerConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Resolved server configuration
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "FeaturebaseClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    def _headers(self, extra: Mapping[str, str] | None) -> httpx.Headers:
        headers = httpx.Headers(extra or {})
        # Fixed headers are applied last so callers cannot override them
        headers["X-API-Key"] = self.config.api_key
        headers["Content-Type"] = "application/json"
        return headers

    async def send(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """
        Issue an authenticated request against the REST origin.

        Args:
            method: HTTP method
            path: Path appended to config.base_url
            params: Filter mapping serialized into the query string
            body: JSON-serializable request body
            headers: Extra headers (cannot replace X-API-Key or Content-Type)

        Returns:
            The decoded JSON body

        Raises:
            TransportError: Non-2xx response or network failure
            InvalidResponseBodyError: 2xx response that is not JSON
        """
        url = build_url(self.config.base_url, path, params)
        content = json.dumps(body) if body is not None else None
        return await self._request(method, url, self._headers(headers), content)

    async def get_public(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        """
        Issue an unauthenticated GET against the public organisation origin.

        Args:
            path: Absolute path resolved against config.org_url
            params: Filter mapping serialized into the query string

        Raises:
            ConfigurationMissingError: If config.org_url is not set
            TransportError: Non-2xx response or network failure
            InvalidResponseBodyError: 2xx response that is not JSON
        """
        if not self.config.org_url:
            raise ConfigurationMissingError(
                setting="org_url",
                flag="--org-url",
                env_var=ENV_ORG_URL,
                message=f"{ENV_ORG_URL} is required for {path}",
            )
        origin = str(httpx.URL(self.config.org_url).join("/")).rstrip("/")
        url = build_url(origin, path, params)
        return await self._request("GET", url, httpx.Headers(), None)

    async def _request(
        self,
        method: str,
        url: str,
        headers: httpx.Headers,
        content: str | None,
    ) -> Any:
        client = self._get_client()
        logger.debug("%s %s", method, url)

        try:
            response = await client.request(method, url, headers=headers, content=content)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise TransportError(detail=str(e) or type(e).__name__, url=url) from e

        if not response.is_success:
            detail = error_detail(response)
            logger.warning("%s %s -> HTTP %d: %s", method, url, response.status_code, detail)
            raise TransportError(
                status_code=response.status_code,
                detail=detail,
                url=url,
            )

        return decode_json(response)
