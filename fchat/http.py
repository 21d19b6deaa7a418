"""HTTP transport for session establishment and capability requests."""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from fchat.cookies import CookieStore

BASE_URL = "https://www.facebook.com"
LANDING_URL = BASE_URL + "/"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36"
)


class WebClient:
    """
    Issues requests with the session's user agent, proxy and cookie store.

    Each call opens a short-lived ``httpx.AsyncClient`` bound to the given
    ``CookieStore`` jar, so cookies set by the response (and by redirect
    hops) land in the store. Requests made without a store start from an
    empty jar; the caller decides which cookies to keep.

    Usage:
        web = WebClient(settings)
        response = await web.get(LANDING_URL, store, no_referer=True)

        # Tests
        web = WebClient(settings, transport=httpx.MockTransport(handler))
    """

    def __init__(
        self,
        settings: Optional[Dict[str, Any]] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings if settings is not None else {}
        self.timeout = timeout
        self.proxy: Optional[str] = self.settings.get("proxy")
        self._transport = transport

    def set_proxy(self, proxy: Optional[str] = None) -> None:
        self.proxy = proxy or None

    def _headers(self, no_referer: bool, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers = {
            "User-Agent": self.settings.get("userAgent") or DEFAULT_USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Connection": "keep-alive",
        }
        if not no_referer:
            headers["Referer"] = LANDING_URL
            headers["Origin"] = BASE_URL
        if extra:
            headers.update(extra)
        return headers

    def _client(self, cookies: Optional[CookieStore]) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {
            "timeout": httpx.Timeout(self.timeout, connect=10.0),
            "follow_redirects": True,
            # the proxy option is the only proxy source
            "trust_env": False,
        }
        if cookies is not None:
            kwargs["cookies"] = cookies.jar
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif self.proxy:
            kwargs["proxy"] = self.proxy
        return httpx.AsyncClient(**kwargs)

    async def get(
        self,
        url: str,
        cookies: Optional[CookieStore] = None,
        *,
        query: Optional[Mapping[str, Any]] = None,
        no_referer: bool = False,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        async with self._client(cookies) as client:
            response = await client.get(url, params=query, headers=self._headers(no_referer, headers))
        if cookies is not None:
            cookies.save(response)
        return response

    async def post(
        self,
        url: str,
        cookies: Optional[CookieStore] = None,
        *,
        form: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        async with self._client(cookies) as client:
            response = await client.post(url, data=form, headers=self._headers(False, headers))
        if cookies is not None:
            cookies.save(response)
        return response
