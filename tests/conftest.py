"""Shared fixtures for timelog tests."""

import datetime as dt
import json

import httpx
import pytest

from timelog import config
from timelog.delivery import DeliveryEngine, RedmineClient
from timelog.models import RedmineSettings, TimeEntry
from timelog.state import MemoryStore, RequestQueue, SettingsStore, StateSurface

REDMINE_URL = "https://redmine.example.com"
API_KEY = "secret-key"


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch, tmp_path):
    """Prevent tests from reading real .env or touching real data."""
    monkeypatch.setenv("REDMINE_URL", "")
    monkeypatch.setenv("REDMINE_API_KEY", "")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setattr(config, "_settings", None)


class FakeRedmine:
    """Scripted Redmine endpoint for httpx.MockTransport.

    Each request consumes the next step of the script; the last step repeats.
    A step is an HTTP status code or "offline" (connection refused).
    """

    def __init__(self, *script):
        self.script = list(script) or [201]
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if step == "offline":
            raise httpx.ConnectError("Connection refused", request=request)
        if step >= 400:
            return httpx.Response(step, json={"errors": ["Activity cannot be blank"]})
        return httpx.Response(step, json={"time_entry": {"id": len(self.requests)}})

    @property
    def issue_ids(self) -> list[int]:
        return [json.loads(r.content)["time_entry"]["issue_id"] for r in self.requests]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def state(store):
    return StateSurface(
        settings=SettingsStore(store, RedmineSettings(redmine_url=REDMINE_URL, api_key=API_KEY)),
        queue=RequestQueue(store),
    )


@pytest.fixture
def engine_factory(state):
    """Build an engine wired to a FakeRedmine running the given script."""
    def factory(*script):
        fake = FakeRedmine(*script)
        client = RedmineClient(timeout=1.0, transport=httpx.MockTransport(fake.handler))
        return DeliveryEngine(state, client), fake
    return factory


@pytest.fixture
def make_entry():
    def factory(issue_id: int = 5, hours: float = 2, **overrides) -> TimeEntry:
        fields = {
            "issue_id": issue_id,
            "date": dt.date(2024, 3, 14),
            "hours": hours,
            "activity_id": 9,
            "comments": f"work on #{issue_id}",
        }
        fields.update(overrides)
        return TimeEntry(**fields)
    return factory
