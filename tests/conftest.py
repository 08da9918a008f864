"""Shared fixtures: a fake Discord REST API served through httpx.MockTransport."""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

from discord_mcp.client import DiscordClient
from discord_mcp.config import ServerConfig

API_PREFIX = "/api/v10"

GUILD_ID = "111111111111111111"
BOT_USER = {"id": "900000000000000001", "username": "test-bot", "discriminator": "0"}

Body = Union[None, Dict[str, Any], List[Any], Callable[[httpx.Request], Any]]


class FakeDiscord:
    """Minimal stand-in for the Discord REST API.

    Routes are keyed on (method, path) with the /api/v10 prefix omitted.
    Unregistered routes answer 404 like Discord's "Unknown ..." errors.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Tuple[int, Body]] = {}
        self.requests: List[httpx.Request] = []
        self.add("GET", "/users/@me", body=BOT_USER)

    def add(self, method: str, path: str, status: int = 200, body: Body = None):
        self.routes[(method, path)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(404, json={"message": "Unknown Route", "code": 0})
        status, body = route
        if callable(body):
            body = body(request)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def calls(self, method: str, path: Optional[str] = None) -> List[httpx.Request]:
        found = []
        for request in self.requests:
            req_path = request.url.path[len(API_PREFIX):]
            if request.method == method and (path is None or req_path == path):
                found.append(request)
        return found


@pytest.fixture
def config():
    return ServerConfig(DISCORD_TOKEN="test-token", DISCORD_GUILD_ID=GUILD_ID)


@pytest.fixture
def discord_api():
    return FakeDiscord()


@pytest.fixture
async def client(config, discord_api):
    client = DiscordClient(config, transport=httpx.MockTransport(discord_api.handler))
    yield client
    await client.close()
