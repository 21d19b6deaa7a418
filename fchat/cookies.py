"""Session cookie store.

A thin layer over ``httpx.Cookies`` that knows how to install serialized
session-state records and how to read the two identity cookies back out.
"""
from __future__ import annotations

import math
import time
from datetime import datetime
from email.utils import formatdate, parsedate_to_datetime
from http.cookiejar import Cookie
from typing import Any, Dict, Iterable, Iterator, List, Optional

import httpx

SERVICE_DOMAINS = ("facebook.com", "messenger.com")
DEFAULT_DOMAIN = ".facebook.com"

IDENTITY_COOKIE = "c_user"
ALT_IDENTITY_COOKIE = "i_user"


def parse_expires(value: Any) -> Optional[int]:
    """Parse an expiry given as epoch seconds/millis, an HTTP date or ISO 8601.

    Returns None (a session cookie) when the value is empty or unparseable.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            try:
                seconds = parsedate_to_datetime(text).timestamp()
            except (TypeError, ValueError):
                try:
                    seconds = datetime.fromisoformat(text.replace("Z", "+00:00")).timestamp()
                except ValueError:
                    return None
    if not math.isfinite(seconds):
        return None
    # millisecond timestamps
    if seconds > 1e11:
        seconds /= 1000.0
    return int(seconds)


def _in_scope(cookie: Cookie) -> bool:
    domain = cookie.domain.lstrip(".")
    return any(domain == d or domain.endswith("." + d) for d in SERVICE_DOMAINS)


class CookieStore:
    """Cookies for the service domains, accumulated across a request sequence."""

    def __init__(self, cookies: Optional[httpx.Cookies] = None):
        self.cookies = cookies if cookies is not None else httpx.Cookies()

    @property
    def jar(self):
        return self.cookies.jar

    def set(
        self,
        key: str,
        value: str,
        domain: str = DEFAULT_DOMAIN,
        path: str = "/",
        expires: Any = None,
    ) -> None:
        domain = domain or DEFAULT_DOMAIN
        path = path or "/"
        expiry = parse_expires(expires)
        cookie = Cookie(
            version=0,
            name=key,
            value=str(value),
            port=None,
            port_specified=False,
            domain=domain,
            domain_specified=True,
            domain_initial_dot=domain.startswith("."),
            path=path,
            path_specified=True,
            secure=False,
            expires=expiry,
            discard=expiry is None,
            comment=None,
            comment_url=None,
            rest={},
            rfc2109=False,
        )
        self.jar.set_cookie(cookie)

    def save(self, response: httpx.Response) -> httpx.Response:
        """Persist cookies from a response and every redirect hop before it."""
        for hop in (*response.history, response):
            self.cookies.extract_cookies(hop)
        return response

    def __iter__(self) -> Iterator[Cookie]:
        now = int(time.time())
        for cookie in self.jar:
            if _in_scope(cookie) and not cookie.is_expired(now):
                yield cookie

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def find(self, name: str) -> Optional[Cookie]:
        for cookie in self:
            if cookie.name == name:
                return cookie
        return None

    def to_app_state(self) -> List[Dict[str, Any]]:
        return [
            {
                "key": cookie.name,
                "value": cookie.value,
                "domain": cookie.domain,
                "path": cookie.path,
                "expires": formatdate(cookie.expires, usegmt=True) if cookie.expires else None,
            }
            for cookie in self
        ]

    def header_value(self) -> str:
        return "; ".join(f"{cookie.name}={cookie.value}" for cookie in self)


def dedupe_app_state(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """One record per cookie key; the first occurrence wins."""
    seen = set()
    unique = []
    for record in records:
        if record["key"] in seen:
            continue
        seen.add(record["key"])
        unique.append(record)
    return unique
