"""Base request helper handed to every capability factory."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import httpx

from fchat.extract import SessionParams, extract
from fchat.http import WebClient

if TYPE_CHECKING:
    from fchat.context import Context

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def jazoest(token: str) -> str:
    return "2" + str(sum(ord(ch) for ch in token))


class RequestDefaults:
    """
    Request helper bound to the landing document and the session identity.

    Every form or query sent through ``get``/``post`` is merged with the
    session fields (``__user``, ``__req``, ``__rev``, ``fb_dtsg`` ...). The
    token is read from the context on each call, so a refreshed token is
    picked up without rebuilding the helper.
    """

    def __init__(
        self,
        web: WebClient,
        document: str,
        ctx: "Context",
        params: Optional[SessionParams] = None,
    ):
        self.web = web
        self.ctx = ctx
        self.revision = (params if params is not None else extract(document)).revision
        self._request_counter = 0

    @property
    def user_id(self) -> str:
        return self.ctx.i_user_id or self.ctx.user_id

    def merge_form(self, form: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        self._request_counter += 1
        merged: Dict[str, Any] = {
            "__user": self.user_id,
            "__req": to_base36(self._request_counter),
            "__a": 1,
        }
        if self.revision:
            merged["__rev"] = self.revision
        token = self.ctx.fb_dtsg
        if token:
            merged["fb_dtsg"] = token
            merged["jazoest"] = jazoest(token)
        # session fields win over caller-supplied ones
        for key, value in (form or {}).items():
            merged.setdefault(key, value)
        return merged

    async def get(self, url: str, query: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return await self.web.get(url, self.ctx.cookies, query=self.merge_form(query))

    async def post(self, url: str, form: Optional[Mapping[str, Any]] = None) -> httpx.Response:
        return await self.web.post(url, self.ctx.cookies, form=self.merge_form(form))
