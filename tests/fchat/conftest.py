"""Shared fixtures for the fchat test suite."""

import httpx
import pytest

from fchat.cookies import CookieStore
from fchat.http import WebClient
from fchat.options import default_settings

LANDING_HTML = (
    "<html><head><script>"
    r'{"endpoint":"wss:\/\/edge-chat.facebook.com\/chat?region=atn"}'
    '["DTSGInitialData",[],{"token":"AQH-token-123"},258]'
    '{"client_revision":1012345,"push_phase":"C3"}'
    "</script></head><body></body></html>"
)

CHECKPOINT_HTML = (
    '<html><body><a href="https://www.facebook.com/checkpoint/block/?next=https%3A%2F%2F">'
    "continue</a></body></html>"
)


@pytest.fixture
def landing_html():
    return LANDING_HTML


@pytest.fixture
def checkpoint_html():
    return CHECKPOINT_HTML


@pytest.fixture
def app_state():
    return [
        {"key": "c_user", "value": "100", "domain": ".facebook.com", "path": "/"},
        {"key": "xs", "value": "secret", "domain": ".facebook.com", "path": "/"},
    ]


@pytest.fixture
def settings():
    return default_settings()


@pytest.fixture
def make_store():
    """Build a CookieStore from ``name=value`` keyword arguments."""

    def _make(**cookies):
        store = CookieStore()
        for key, value in cookies.items():
            store.set(key, value)
        return store

    return _make


@pytest.fixture
def make_web(settings):
    """Build a WebClient whose requests are answered by ``handler``.

    Every request seen by the transport is appended to ``web.requests``.
    """

    def _make(handler):
        requests = []

        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        web = WebClient(settings, transport=httpx.MockTransport(record))
        web.requests = requests
        return web

    return _make


def page(text: str, *cookies: str, status: int = 200) -> httpx.Response:
    """Response with ``Set-Cookie`` headers for each ``name=value`` given."""
    headers = [("set-cookie", f"{c}; Domain=.facebook.com; Path=/") for c in cookies]
    return httpx.Response(status, text=text, headers=headers)


@pytest.fixture
def html_page():
    return page
