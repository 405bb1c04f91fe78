"""
Integration tests for tool calls through the MCP server handlers.

Tests cover:
- A feedback workflow against a routed fake API (create, list, upvote, comment)
- Changelog subscriber management
- Error mapping seen by an MCP client
"""

import json
from typing import Any

import httpx
import pytest
import pytest_asyncio
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, METHOD_NOT_FOUND, CallToolRequest, CallToolRequestParams

from featurebase_mcp.dispatcher import Dispatcher
from featurebase_mcp.http import FeaturebaseClient
from featurebase_mcp.server import ERROR_PREFIX, build_server


class RoutedApi:
    """Fake Featurebase API answering by (method, path)."""

    def __init__(self, routes: dict[tuple[str, str], tuple[int, Any]]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes.get((request.method, request.url.path), (404, {"message": "no route"}))
        return httpx.Response(status, json=body)


async def call(server, name: str, arguments: dict[str, Any]) -> Any:
    handler = server.request_handlers[CallToolRequest]
    result = await handler(
        CallToolRequest(method="tools/call", params=CallToolRequestParams(name=name, arguments=arguments))
    )
    return json.loads(result.root.content[0].text)


ROUTES = {
    ("POST", "/v2/posts"): (
        200,
        {"success": True, "submission": {"id": "s1", "title": "Dark mode", "content": "Please", "upvotes": 1}},
    ),
    ("GET", "/v2/posts"): (
        200,
        {
            "results": [
                {"id": "s1", "title": "Dark mode", "upvotes": 1, "author": {"name": "Ada", "email": "a@x"}},
            ],
            "page": 1,
            "limit": 10,
            "totalPages": 1,
            "totalResults": 1,
        },
    ),
    ("POST", "/v2/posts/upvoters"): (200, {"success": True}),
    ("GET", "/v2/posts/upvoters"): (
        200,
        {
            "results": [
                {
                    "userId": "u2",
                    "organizationId": "o1",
                    "companies": [{"id": "c1", "name": "Acme", "arr": 100}],
                    "email": "bob@x",
                    "name": "Bob",
                    "verified": True,
                }
            ],
            "page": 1,
            "limit": 10,
            "totalPages": 1,
            "totalResults": 1,
        },
    ),
    ("POST", "/v2/comment"): (200, {"success": True, "comment": {"id": "c9", "content": "+1", "score": 0}}),
    ("GET", "/api/v1/submission"): (200, {"submission": {"id": "s1", "slug": "dark-mode"}}),
    ("GET", "/v2/changelog/subscribers"): (200, {"results": [{"email": "sub@x"}], "page": 1}),
    ("POST", "/v2/changelog/subscribers"): (200, {"success": True}),
    ("DELETE", "/v2/changelog/subscribers"): (200, {"success": True}),
}


@pytest.fixture
def routed_api() -> RoutedApi:
    return RoutedApi(ROUTES)


@pytest_asyncio.fixture
async def server(config, routed_api):
    async with FeaturebaseClient(config, transport=httpx.MockTransport(routed_api)) as client:
        yield build_server(Dispatcher(client))


class TestFeedbackWorkflow:
    """Posts, upvotes and comments end to end."""

    @pytest.mark.asyncio
    async def test_post_lifecycle(self, server, routed_api) -> None:
        """Create, list with select, upvote, read upvoters, comment, resolve slug."""
        created = await call(server, "create_post", {"title": "Dark mode", "category": "Ideas", "content": "Please"})
        assert created == {"success": True, "submission": {"id": "s1"}}
        assert json.loads(routed_api.requests[-1].content) == {
            "title": "Dark mode",
            "category": "Ideas",
            "content": "Please",
        }

        listed = await call(server, "list_posts", {"q": "dark", "select": "id,author(name)"})
        assert listed["results"] == [{"id": "s1", "author": {"name": "Ada"}}]
        assert listed["totalResults"] == 1
        assert routed_api.requests[-1].url.query == b"q=dark"

        await call(server, "add_upvoter", {"id": "s1", "email": "bob@x", "name": "Bob"})

        upvoters = await call(server, "get_post_upvoters", {"submissionId": "s1"})
        assert upvoters["results"] == [
            {"userId": "u2", "organizationId": "o1", "companies": [{"id": "c1", "name": "Acme"}], "email": "bob@x", "name": "Bob"}
        ]

        comment = await call(server, "create_comment", {"submissionId": "s1", "content": "+1"})
        assert comment == {"success": True, "comment": {"id": "c9"}}

        resolved = await call(server, "resolve_post_slug", {"slug": "dark-mode"})
        assert resolved == {"submission": {"id": "s1", "slug": "dark-mode"}}
        assert routed_api.requests[-1].url.host == "feedback.example.test"

    @pytest.mark.asyncio
    async def test_every_authenticated_request_carries_key(self, server, routed_api) -> None:
        """All REST calls send the configured key."""
        await call(server, "list_posts", {})
        await call(server, "create_post", {"title": "t", "category": "c"})

        assert all(r.headers["X-API-Key"] == "test-key" for r in routed_api.requests)


class TestChangelogSubscribers:
    """Subscriber management end to end."""

    @pytest.mark.asyncio
    async def test_subscribers(self, server, routed_api) -> None:
        """Add, list and remove subscribers."""
        assert await call(server, "add_changelog_subscriber", {"email": "sub@x", "name": "Sub"}) == {"success": True}

        listed = await call(server, "get_changelog_subscribers", {})
        assert listed == {"results": [{"email": "sub@x"}], "page": 1}
        assert routed_api.requests[-1].url.query == b"limit=10&page=1"

        assert await call(server, "remove_changelog_subscriber", {"email": "sub@x"}) == {"success": True}
        assert routed_api.requests[-1].method == "DELETE"


class TestErrorsSeenByClient:
    """Errors as an MCP client receives them."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server, routed_api) -> None:
        """Unknown tools are METHOD_NOT_FOUND and never reach the API."""
        with pytest.raises(McpError) as exc_info:
            await call(server, "drop_database", {})

        assert exc_info.value.error.code == METHOD_NOT_FOUND
        assert routed_api.requests == []

    @pytest.mark.asyncio
    async def test_upstream_404(self, server) -> None:
        """An unrouted path surfaces the upstream body."""
        with pytest.raises(McpError) as exc_info:
            await call(server, "delete_changelog", {"id": "cl1"})

        assert exc_info.value.error.code == INTERNAL_ERROR
        assert exc_info.value.error.message == f'{ERROR_PREFIX}HTTP 404: {{"message":"no route"}}'
