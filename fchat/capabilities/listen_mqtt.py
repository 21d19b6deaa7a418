"""
Listener boundary.

The real-time transport is not implemented here. ``listen_mqtt`` builds
the connection parameters a streaming client needs from the session
context and hands them to an injected connector coroutine, which owns the
socket and reports events through the callback.
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from fchat._logging import get_component_logger
from fchat.capabilities.base import CapabilityFactory, capability
from fchat.http import BASE_URL, DEFAULT_USER_AGENT

logger = get_component_logger("listen_mqtt")

FALLBACK_ENDPOINT = "wss://edge-chat.facebook.com/chat"

EventCallback = Callable[[Optional[BaseException], Optional[Any]], None]
Connector = Callable[["ListenSession", EventCallback], Awaitable[None]]


@dataclass
class ListenSession:
    url: str
    user_id: str
    client_id: str
    session_id: int
    region: str
    headers: Dict[str, str] = field(default_factory=dict)
    reconnect_interval: Optional[int] = None  # None: reconnect disabled
    self_listen: bool = False
    listen_events: bool = False
    listen_typing: bool = False


class Listener:
    def __init__(self, session: ListenSession, task: asyncio.Task):
        self.session = session
        self._task = task

    @property
    def running(self) -> bool:
        return not self._task.done()

    def stop(self) -> None:
        if not self._task.done():
            self._task.cancel()


def build_listen_session(ctx, reconnect_interval: Optional[int] = None) -> ListenSession:
    session_id = random.randint(1, 2**53 - 1)
    base = ctx.mqtt_endpoint or f"{FALLBACK_ENDPOINT}?region={ctx.region.lower()}"
    url = httpx.URL(base).copy_merge_params({"sid": session_id, "cid": ctx.client_id})
    settings = ctx.settings
    return ListenSession(
        url=str(url),
        user_id=ctx.user_id,
        client_id=ctx.client_id,
        session_id=session_id,
        region=ctx.region,
        headers={
            "Cookie": ctx.cookies.header_value(),
            "Origin": BASE_URL,
            "Referer": BASE_URL + "/",
            "User-Agent": settings.get("userAgent") or DEFAULT_USER_AGENT,
            "Host": url.host,
        },
        reconnect_interval=reconnect_interval if settings.get("autoReconnect", True) else None,
        self_listen=bool(settings.get("selfListen")),
        listen_events=bool(settings.get("listenEvents")),
        listen_typing=bool(settings.get("listenTyping")),
    )


class ListenMqtt(CapabilityFactory):
    name = "listen_mqtt"

    def __init__(self, connector: Optional[Connector] = None, reconnect_interval: Optional[int] = 3600):
        self.connector = connector
        self.reconnect_interval = reconnect_interval

    def __call__(self, defaults, api, ctx):
        def report(callback: EventCallback, task: asyncio.Task) -> None:
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                logger.error("listener_failed", error=str(exc))
                callback(exc, None)

        def listen_mqtt(callback: EventCallback, connector: Optional[Connector] = None) -> Listener:
            connect = connector or self.connector
            if connect is None:
                raise RuntimeError("No streaming connector configured for listen_mqtt")

            # one listener per session
            if ctx.mqtt_client is not None:
                ctx.mqtt_client.stop()

            session = build_listen_session(ctx, self.reconnect_interval)
            task = asyncio.create_task(connect(session, callback))
            task.add_done_callback(lambda t: report(callback, t))

            listener = Listener(session, task)
            ctx.mqtt_client = listener
            ctx.first_listen = False
            logger.info("listening", region=session.region)
            return listener

        return listen_mqtt


@capability("stop_listen_mqtt")
def stop_listen_mqtt(defaults, api, ctx):
    def stop_listen_mqtt() -> bool:
        listener = ctx.mqtt_client
        if listener is None:
            return False
        listener.stop()
        ctx.mqtt_client = None
        return True

    return stop_listen_mqtt
