"""Session establishment.

Reaches the authenticated landing page from stored session state or from
credentials, following at most one meta-refresh redirect. Every request
waits for the previous response and its cookies; nothing is retried.
"""
from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import httpx

from fchat._logging import get_component_logger
from fchat.cookies import DEFAULT_DOMAIN, CookieStore
from fchat.extract import find_meta_refresh
from fchat.http import LANDING_URL, WebClient
from fchat.types import EstablishError, MalformedStateError

logger = get_component_logger("establish")

AppState = Union[str, Sequence[Mapping[str, Any]]]


def parse_app_state(app_state: AppState) -> Sequence[Mapping[str, Any]]:
    """Deserialize session state into cookie records.

    Raises:
        MalformedStateError: text that is not JSON, a non-list, or a record
            without ``key``/``value``
    """
    if isinstance(app_state, (str, bytes)):
        try:
            app_state = json.loads(app_state)
        except ValueError as exc:
            raise MalformedStateError("Failed to parse app state JSON", raw=str(exc)) from exc

    if not isinstance(app_state, (list, tuple)):
        raise MalformedStateError(
            f"App state must be a list of cookie records, got {type(app_state).__name__}"
        )
    for index, record in enumerate(app_state):
        if not isinstance(record, Mapping) or "key" not in record or "value" not in record:
            raise MalformedStateError(f"Cookie record {index} is missing key or value", raw=record)
    return app_state


def load_app_state(app_state: AppState) -> CookieStore:
    store = CookieStore()
    for record in parse_app_state(app_state):
        store.set(
            record["key"],
            record["value"],
            domain=record.get("domain") or DEFAULT_DOMAIN,
            path=record.get("path") or "/",
            expires=record.get("expires"),
        )
    return store


async def _follow_meta_refresh(
    web: WebClient, response: httpx.Response, store: CookieStore
) -> httpx.Response:
    target = find_meta_refresh(response.text)
    if target is None:
        return response
    logger.debug("following_meta_refresh", url=target)
    return await web.get(target, store)


async def establish(
    web: WebClient,
    app_state: Optional[AppState] = None,
    credentials: Optional[Mapping[str, str]] = None,
) -> Tuple[str, CookieStore]:
    """
    Fetch the landing document and the cookie store that reached it.

    Args:
        web: Transport carrying the user agent and proxy settings
        app_state: Serialized session state (list of cookie records or JSON text)
        credentials: ``{"email", "password"}``; used when no app_state is given

    Returns:
        (document body, populated CookieStore)

    Raises:
        MalformedStateError: app_state cannot be parsed, or no login data given
        EstablishError: a request failed at the transport level
    """
    if app_state is not None:
        store = load_app_state(app_state)
    elif credentials:
        store = CookieStore()
    else:
        raise MalformedStateError("Login data needs either app_state or email and password")

    try:
        if app_state is not None:
            response = await web.get(LANDING_URL, store, no_referer=True)
        else:
            # prime baseline cookies unauthenticated, then return with them attached
            primer = await web.get(LANDING_URL, None, no_referer=True)
            store.save(primer)
            response = await web.get(LANDING_URL, store)
        response = await _follow_meta_refresh(web, response, store)
    except httpx.HTTPError as exc:
        raise EstablishError(f"Request failed while establishing session: {exc}", raw=exc) from exc

    logger.debug("session_established", status=response.status_code, cookies=len(store))
    return response.text, store
