"""
tests/conftest.py

Configuration for pytest.
"""

import itertools
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest

from unsurf.data_models.endpoint import CapturedEndpoint, HTTPMethod
from unsurf.data_models.network_event import NetworkEvent
from unsurf.data_models.path import PathStep, PathStepAction, ScoutedPath
from unsurf.data_models.site import Site
from unsurf.services.browser import StaticBrowser
from unsurf.services.store import InMemoryStore
from unsurf.utils.retry import RetryPolicy


@pytest.fixture(scope="session")
def tests_root() -> Path:
    """
    Root directory for tests.
    Returns:
        Path to the tests directory.
    """
    return Path(__file__).parent.resolve()


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def make_event() -> Callable[..., NetworkEvent]:
    """
    Factory fixture to create NetworkEvent with hardcoded defaults.

    Usage:
        event = make_event(url="https://api.example.com/users/1")
        event = make_event(method="POST", request_body='{"name": "A"}')
    """
    counter = itertools.count(1)

    def factory(**kwargs: Any) -> NetworkEvent:
        defaults: dict[str, Any] = {
            "request_id": f"req-{next(counter)}",
            "url": "https://api.example.com/users",
            "method": "GET",
            "resource_type": "fetch",
            "response_status": 200,
            "response_headers": {"content-type": "application/json"},
            "timestamp": 1700000000.0,
        }
        return NetworkEvent(**{**defaults, **kwargs})
    return factory


@pytest.fixture
def browser_factory() -> Callable[..., Callable[[], StaticBrowser]]:
    """
    Factory fixture building a browser_factory for Scout around one StaticBrowser.

    The created browsers are exposed as factory.browsers for assertions.
    """
    def factory(events: list[NetworkEvent] | None = None, **kwargs: Any) -> Callable[[], StaticBrowser]:
        browsers: list[StaticBrowser] = []

        def create() -> StaticBrowser:
            browser = StaticBrowser(events=events or [], screenshot=b"\x89PNG", **kwargs)
            browsers.append(browser)
            return browser

        create.browsers = browsers  # type: ignore[attr-defined]
        return create
    return factory


@pytest.fixture
def seed_path(store: InMemoryStore) -> Callable[..., Awaitable[ScoutedPath]]:
    """
    Async factory persisting a site, endpoints and a path referencing them.

    Usage:
        path = await seed_path([(HTTPMethod.GET, "https://api.example.com/users")])
    """
    async def factory(
        endpoints: list[tuple[HTTPMethod, str]] | None = None,
        url: str = "https://example.com",
        task: str = "list users",
    ) -> ScoutedPath:
        site = Site(url=url, domain=url.split("://", 1)[1].split("/", 1)[0])
        await store.save_site(site)
        persisted = await store.save_endpoints([
            CapturedEndpoint(site_id=site.id, method=method, path_pattern=pattern, sample_count=1)
            for method, pattern in (endpoints or [])
        ])
        path = ScoutedPath(
            site_id=site.id,
            task=task,
            steps=[PathStep(action=PathStepAction.NAVIGATE, url=url)],
            endpoint_ids=[endpoint.id for endpoint in persisted],
        )
        await store.save_path(path)
        return path
    return factory


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested through recording_policy."""
    return []


@pytest.fixture
def recording_policy(sleeps: list[float]) -> RetryPolicy:
    """Heal retry policy (2 retries from 0.5s) that records its sleeps instead of waiting."""
    async def record(delay: float) -> None:
        sleeps.append(delay)

    return RetryPolicy(max_retries=2, base_delay=0.5, sleep=record)
