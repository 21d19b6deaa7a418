"""
Login entry point.

Runs option validation, session establishment, parameter extraction,
context building and registry assembly in sequence. The call ends in
exactly one outcome: the assembled Api, or one SessionError.

Usage:
    api = await login({"app_state": cookies}, {"selfListen": True})
    listener = api.listen(on_event, connector=my_connector)

    # Callback style
    await login({"app_state": cookies}, callback=lambda err, api: ...)
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Mapping, Optional

import httpx

from fchat import _logging
from fchat.capabilities import CapabilityFactory, Connector, default_capabilities
from fchat.config import AppConfig
from fchat.context import build_context
from fchat.database import SQLiteClient
from fchat.establish import establish
from fchat.extract import extract
from fchat.http import WebClient
from fchat.options import apply_options, default_settings
from fchat.registry import REFRESH_INTERVAL, Api, assemble
from fchat.types import SessionError

logger = _logging.get_component_logger("login")

LoginCallback = Callable[[Optional[BaseException], Optional[Api]], Any]


def _report_disconnect(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("database_disconnect_failed", error=str(exc))


async def _login(
    login_data: Mapping[str, Any],
    options: Optional[Mapping[str, Any]],
    config: AppConfig,
    transport: Optional[httpx.AsyncBaseTransport],
    factories: Optional[Iterable[CapabilityFactory]],
    connector: Optional[Connector],
    db: Optional[SQLiteClient],
    refresh_interval: float,
) -> Api:
    settings = default_settings()
    web = WebClient(settings, transport=transport)
    apply_options(settings, options, web=web)

    app_state = login_data.get("app_state", login_data.get("appState"))
    credentials = None
    if login_data.get("email") and login_data.get("password"):
        credentials = {"email": login_data["email"], "password": login_data["password"]}

    document, cookies = await establish(web, app_state=app_state, credentials=credentials)

    params = extract(document)
    ctx = build_context(settings, document, cookies, params=params)

    owns_db = db is None and config.database.enabled
    if owns_db:
        db = SQLiteClient(config.database.path)
    if factories is None:
        factories = default_capabilities(config, connector=connector)

    api = assemble(
        ctx,
        settings,
        document,
        web,
        factories=factories,
        db=db,
        refresh_interval=refresh_interval,
        params=params,
    )
    if owns_db:
        # created here, so closed with the session
        def close_db() -> None:
            api.disconnect_task = asyncio.ensure_future(db.disconnect())
            api.disconnect_task.add_done_callback(_report_disconnect)

        api.on_close(close_db)
    return api


async def login(
    login_data: Mapping[str, Any],
    options: Optional[Mapping[str, Any]] = None,
    callback: Optional[LoginCallback] = None,
    *,
    config: Optional[AppConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    factories: Optional[Iterable[CapabilityFactory]] = None,
    connector: Optional[Connector] = None,
    db: Optional[SQLiteClient] = None,
    refresh_interval: float = REFRESH_INTERVAL,
) -> Optional[Api]:
    """
    Log in and return the capability registry.

    Args:
        login_data: ``app_state`` (or ``appState``) and/or ``email``/``password``
        options: Partial login options, see ``fchat.options``
        callback: Optional ``callback(err, api)``; when given, errors are
            delivered to it instead of being raised
        config: Loaded AppConfig; defaults when omitted
        transport: httpx transport override (tests, custom networking)
        factories: Capability factories; the built-in list when omitted
        connector: Streaming connector used by ``listen_mqtt``
        db: Database client for the background sync; built from config when
            ``database.enabled`` is set
        refresh_interval: Seconds between token refreshes

    Raises:
        SessionError: only when no callback is given
    """
    _logging.ensure_logging()
    if callable(options) and callback is None:
        callback, options = options, None

    try:
        api = await _login(
            login_data,
            options,
            config or AppConfig(),
            transport,
            factories,
            connector,
            db,
            refresh_interval,
        )
    except SessionError as err:
        logger.error("login_failed", error=str(err))
        if callback is None:
            raise
        callback(err, None)
        return None

    logger.info("login_successful")
    if callback is not None:
        callback(None, api)
    return api
