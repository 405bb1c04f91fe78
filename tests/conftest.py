"""
Pytest configuration and fixtures for featurebase-mcp tests.

This module provides shared fixtures used across unit and integration
tests. HTTP traffic never leaves the process: FeaturebaseClient is built
on an httpx.MockTransport driven by FakeApi.
"""

import json
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, Generator

import httpx
import pytest

from featurebase_mcp.http import FeaturebaseClient
from featurebase_mcp.schema import ServerConfig


class FakeApi:
    """
    Request recorder that answers every request with one canned response.

    Attributes:
        requests: Every request received, in order
    """

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.json_body = {"success": True} if json_body is None else json_body
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.json_body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_body(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config() -> ServerConfig:
    """Configuration with both origins set."""
    return ServerConfig(
        api_key="test-key",
        base_url="https://api.featurebase.test/v2",
        org_url="https://feedback.example.test",
    )


@pytest.fixture
def config_without_org() -> ServerConfig:
    """Configuration without a public organisation origin."""
    return ServerConfig(api_key="test-key", base_url="https://api.featurebase.test/v2")


@pytest.fixture
def fake_api() -> FakeApi:
    """A FakeApi answering 200 {"success": true}."""
    return FakeApi()


@pytest.fixture
def make_client(config: ServerConfig) -> Callable[..., FeaturebaseClient]:
    """Build a FeaturebaseClient backed by a FakeApi."""

    def _make(api: FakeApi, server_config: ServerConfig | None = None) -> FeaturebaseClient:
        return FeaturebaseClient(server_config or config, transport=httpx.MockTransport(api))

    return _make


@pytest.fixture
def api_factory() -> type[FakeApi]:
    """The FakeApi class, for tests that need a non-default response."""
    return FakeApi
