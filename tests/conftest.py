"""Pytest shared fixtures: stubbed Keycloak HTTP endpoints and key material."""
import json
import pathlib
import sys
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.asymmetric import rsa

from iamclient.core.keycloak import KeycloakClient

BASE_URL = "http://kc.test"


# ─────────────────────────────────────────────────────────────────────────────
# Stub HTTP layer
# ─────────────────────────────────────────────────────────────────────────────
class StubResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any = None, status_code: int = 200, headers: Optional[dict] = None):
        self.status_code = status_code
        self.reason = HTTPStatus(status_code).phrase
        self.headers = headers or {}
        self.url = ""
        if payload is None:
            self.text = ""
        elif isinstance(payload, str):
            self.text = payload
        else:
            self.text = json.dumps(payload)
        self.content = self.text.encode()

    def json(self):
        return json.loads(self.text)


@dataclass
class RecordedCall:
    method: str
    url: str
    kwargs: dict = field(default_factory=dict)

    @property
    def headers(self) -> dict:
        return self.kwargs.get("headers") or {}

    @property
    def params(self) -> dict:
        return self.kwargs.get("params") or {}

    @property
    def json(self) -> Any:
        return self.kwargs.get("json")

    @property
    def data(self) -> Any:
        return self.kwargs.get("data")

    @property
    def auth(self) -> Any:
        return self.kwargs.get("auth")


class FakeKeycloak:
    """Records every request and replays queued responses in order.

    With nothing queued, a request gets an empty 204 response.
    """

    def __init__(self):
        self.calls: list[RecordedCall] = []
        self._responses: list = []

    def respond(self, payload: Any = None, status_code: int = 200, headers: Optional[dict] = None) -> None:
        self._responses.append(StubResponse(payload, status_code, headers))

    def fail(self, exc: Exception) -> None:
        self._responses.append(exc)

    @property
    def last(self) -> RecordedCall:
        assert self.calls, "no request was sent"
        return self.calls[-1]

    def handler(self, method: str):
        def _send(url, **kwargs):
            self.calls.append(RecordedCall(method, url, kwargs))
            if not self._responses:
                resp = StubResponse(status_code=204)
            else:
                resp = self._responses.pop(0)
            if isinstance(resp, Exception):
                raise resp
            resp.url = url
            return resp
        return _send


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from hitting a live Keycloak."""
    def _refuse(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected network access in tests: {url}")

    for verb in ("get", "post", "put", "delete"):
        monkeypatch.setattr(requests, verb, _refuse)


@pytest.fixture()
def kc_http(monkeypatch):
    """Replace requests' verb functions with a recording fake."""
    fake = FakeKeycloak()
    for verb in ("get", "post", "put", "delete"):
        monkeypatch.setattr(requests, verb, fake.handler(verb.upper()))
    return fake


@pytest.fixture()
def kc_client():
    return KeycloakClient(BASE_URL)


# ─────────────────────────────────────────────────────────────────────────────
# RSA Key Pair for JWT Testing
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(scope="session")
def rsa_key_pair():
    """Generate RSA key pair for JWT signing in tests."""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
        backend=default_backend()
    )
    return {
        "private_key": private_key,
        "public_key": private_key.public_key(),
    }
