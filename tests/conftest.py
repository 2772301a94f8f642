"""Pytest shared fixtures for management client tests."""
import json
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from rbacmgmt.core.management import HttpResponse, UserManager


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from hitting a live cluster."""

    def _stub_request(self, method, url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")

    monkeypatch.setattr(requests.Session, "request", _stub_request)


# ─────────────────────────────────────────────────────────────────────────────
# Fake Transport
# ─────────────────────────────────────────────────────────────────────────────
class FakeTransport:
    """Records requests and replays queued responses or errors."""

    def __init__(self):
        self.requests = []
        self._outcomes = []

    def respond(self, status_code: int = 200, payload=None, body: str = ""):
        if payload is not None:
            body = json.dumps(payload)
        self._outcomes.append(HttpResponse(status_code=status_code, body=body, url="http://cluster:8091"))

    def fail(self, exc: Exception):
        self._outcomes.append(exc)

    async def request(self, spec):
        self.requests.append(spec)
        if not self._outcomes:
            raise RuntimeError(f"No response queued for {spec.method} {spec.path}")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def last(self):
        return self.requests[-1]


@pytest.fixture()
def transport():
    return FakeTransport()


@pytest.fixture()
def manager(transport):
    return UserManager(transport)


@pytest.fixture()
def user_record():
    """A user granted one role directly and one through a group."""
    return {
        "id": "alice",
        "name": "Alice",
        "domain": "local",
        "groups": ["admins"],
        "external_groups": ["cn=ops"],
        "password_change_date": "2020-04-14T09:45:30.000Z",
        "roles": [
            {
                "role": "data_reader",
                "bucket_name": "travel",
                "origins": [{"type": "user"}],
            },
            {
                "role": "admin",
                "origins": [{"type": "group", "name": "admins"}],
            },
            {
                "role": "query_select",
                "bucket_name": "travel",
                "origins": [{"type": "group", "name": "admins"}, {"type": "user"}],
            },
        ],
    }
