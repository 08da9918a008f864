import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from .config import ServerConfig
from .errors import (
    DiscordAPIError,
    ForbiddenError,
    NotFoundError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)


# ---------------- ERROR MAPPING ----------------
def _error_from_response(resp: httpx.Response) -> DiscordAPIError:
    """Turn a non-success Discord response into a typed exception."""
    status = resp.status_code
    try:
        error_data = resp.json()
    except ValueError:
        error_data = {}
    if not isinstance(error_data, dict):
        error_data = {}

    code = error_data.get("code")
    detail = error_data.get("message") or resp.text or resp.reason_phrase

    if status == 429:
        return RateLimitedError(error_data.get("retry_after", 1), code=code)
    message = f"Discord API Error {status}: {detail}"
    if status == 404:
        return NotFoundError(message, status=status, code=code)
    if status == 403:
        return ForbiddenError(message, status=status, code=code)
    return DiscordAPIError(message, status=status, code=code)


# ---------------- HTTP CLIENT ----------------
class DiscordHTTPClient:
    """Pooled HTTP client for the Discord REST API.

    The underlying ``httpx.AsyncClient`` is created on first use and reused
    for every request until ``close()``. Failed requests are not retried.
    """

    def __init__(self, config: ServerConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.client: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self.client is None:
            async with self._lock:
                if self.client is None:
                    limits = httpx.Limits(
                        max_keepalive_connections=self.config.MAX_KEEPALIVE_CONNECTIONS,
                        max_connections=self.config.CONNECTION_POOL_SIZE,
                    )

                    timeout = httpx.Timeout(
                        connect=10.0,
                        read=self.config.REQUEST_TIMEOUT,
                        write=10.0,
                        pool=5.0,
                    )

                    self.client = httpx.AsyncClient(
                        base_url=self.config.DISCORD_API_BASE,
                        limits=limits,
                        timeout=timeout,
                        headers={
                            "Authorization": self.config.auth_header,
                            "Content-Type": "application/json",
                        },
                        follow_redirects=True,
                        transport=self._transport,
                    )
        return self.client

    async def request(self, method: str, endpoint: str, params: Optional[Dict[str, Any]] = None,
                      json: Optional[Any] = None) -> Any:
        """Make a Discord API request and return the decoded body.

        Returns None for 204 No Content. Raises a DiscordAPIError subclass for
        any non-success status.
        """
        client = await self._ensure_client()

        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint

        request_kwargs: Dict[str, Any] = {"params": params}
        # Only add json parameter if it's not None
        if json is not None:
            request_kwargs["json"] = json

        try:
            resp = await client.request(method, endpoint, **request_kwargs)
        except httpx.HTTPError as e:
            raise DiscordAPIError(f"Request to Discord failed: {e}") from e

        logger.debug("%s %s -> %s", method, endpoint, resp.status_code)

        if resp.status_code == 204:
            return None
        if resp.is_success:
            try:
                return resp.json()
            except ValueError:
                return None
        raise _error_from_response(resp)

    async def close(self):
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
