"""
Pytest configuration for the Healthics client test suite.

Shared fixtures:
- ``backend``: a fake REST server implemented as a ``requests`` transport
  adapter.  Tests register canned responses per (method, path) and can
  inspect every request that was sent.
- ``settings`` / ``session``: a client wired to that fake server.
- ``admin_session`` / ``patient_session``: the same, already signed in.

No network access happens anywhere in the suite.
"""
from __future__ import annotations

import email.parser
import email.policy
import json
import threading
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from api.config import ClientSettings
from session.store import SessionStore

BASE_URL = "http://healthics.test/api"


def make_response(
    request: requests.PreparedRequest,
    status: int = 200,
    payload: Any = None,
    content: Optional[bytes] = None,
    headers: Optional[dict] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.request = request
    response.url = request.url
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {"Content-Type": "application/json"})
    if content is None:
        content = json.dumps(payload).encode("utf-8") if payload is not None else b""
    response._content = content
    return response


class FakeBackend(BaseAdapter):
    """Answers registered routes; anything else is a 404."""

    def __init__(self):
        super().__init__()
        self.routes: dict[tuple[str, str], Callable] = {}
        self.calls: list[requests.PreparedRequest] = []
        self.timeouts: list = []
        self._lock = threading.Lock()

    def add(
        self,
        method: str,
        path: str,
        payload: Any = None,
        status: int = 200,
        content: Optional[bytes] = None,
        headers: Optional[dict] = None,
        exc: Optional[Exception] = None,
        handler: Optional[Callable] = None,
    ) -> None:
        def respond(request):
            if exc is not None:
                raise exc
            if handler is not None:
                return handler(request)
            return make_response(request, status, payload, content, headers)

        self.routes[(method, path)] = respond

    def paths(self) -> list[str]:
        return [self._path(r.url) for r in self.calls]

    def last(self, method: str, path: str) -> requests.PreparedRequest:
        for request in reversed(self.calls):
            if request.method == method and self._path(request.url) == path:
                return request
        raise AssertionError(f"{method} {path} was never called")

    @staticmethod
    def _path(url: str) -> str:
        path = urlsplit(url).path
        prefix = urlsplit(BASE_URL).path
        return path[len(prefix):] if path.startswith(prefix) else path

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        with self._lock:
            self.calls.append(request)
            self.timeouts.append(timeout)
        route = self.routes.get((request.method, self._path(request.url)))
        if route is None:
            return make_response(request, 404, {"message": "Not found"})
        return route(request)

    def close(self) -> None:
        pass


def form_fields(request: requests.PreparedRequest) -> dict[str, str]:
    """Text fields of a multipart request body; file parts are skipped."""
    head = f"Content-Type: {request.headers['Content-Type']}\r\n\r\n".encode("ascii")
    message = email.parser.BytesParser(policy=email.policy.default).parsebytes(head + request.body)
    fields = {}
    for part in message.iter_parts():
        if part.get_filename() is not None:
            continue
        fields[part.get_param("name", header="content-disposition")] = part.get_content()
    return fields


def login_payload(user_id: int, username: str, roles: list[str]) -> dict:
    return {
        "token": f"token-{username}",
        "tokenType": "Bearer",
        "id": user_id,
        "username": username,
        "email": f"{username}@example.com",
        "roles": roles,
    }


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def http(backend):
    s = requests.Session()
    s.mount("http://healthics.test/", backend)
    return s


@pytest.fixture
def settings():
    return ClientSettings(base_url=BASE_URL)


@pytest.fixture
def session(settings, http):
    store = SessionStore(settings, http=http)
    store.restore()
    return store


@pytest.fixture
def admin_session(session, backend):
    backend.add("POST", "/auth/login", login_payload(1, "admin", ["ROLE_ADMIN"]))
    session.login("admin", "secret")
    return session


@pytest.fixture
def patient_session(session, backend):
    backend.add("POST", "/auth/login", login_payload(5, "tomy", ["ROLE_PATIENT"]))
    session.login("tomy", "secret")
    return session
