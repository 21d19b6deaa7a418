from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Dict, Iterable, Iterator, List, Optional

from fchat._logging import get_component_logger
from fchat.capabilities import CapabilityFactory, default_capabilities
from fchat.context import Context
from fchat.cookies import dedupe_app_state
from fchat.database import SQLiteClient
from fchat.defaults import RequestDefaults
from fchat.extract import SessionParams
from fchat.http import WebClient
from fchat.options import apply_options
from fchat.types import RefreshError

logger = get_component_logger("registry")

REFRESH_INTERVAL = 60 * 60 * 24  # seconds
LISTEN_ALIAS = "listen"
LISTEN_CAPABILITY = "listen_mqtt"
REFRESH_CAPABILITY = "refresh_fb_dtsg"


class PeriodicTask:
    """
    Runs a coroutine function every ``interval`` seconds until cancelled.

    Failures are logged and the next tick runs as scheduled.
    """

    def __init__(self, name: str, func: Callable[[], Awaitable[Any]], interval: float):
        self.name = name
        self.func = func
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    def start(self) -> "PeriodicTask":
        if self._task is None:
            self._task = asyncio.create_task(self._run())
        return self

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.func()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("periodic_task_failed", task=self.name, error=str(exc))

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()


class Api:
    """
    Capability registry for one session.

    Entries are reachable as attributes (``api.listen_mqtt``) or items
    (``api["listen_mqtt"]``). Names are unique; aliases point at the same
    object as their target.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Callable[..., Any]] = {}
        self._closers: List[Callable[[], Any]] = []
        self.refresher: Optional[PeriodicTask] = None
        self.sync_task: Optional[asyncio.Task] = None
        self.db: Optional[SQLiteClient] = None
        self.disconnect_task: Optional[asyncio.Task] = None
        self.closed = False

    def install(self, name: str, func: Callable[..., Any]) -> None:
        # attribute access would resolve these to the registry itself
        if name.startswith("_") or hasattr(type(self), name) or name in vars(self):
            raise ValueError(f"Capability name {name!r} is reserved")
        if name in self._entries:
            raise ValueError(f"Capability {name!r} is already installed")
        self._entries[name] = func

    def alias(self, alias: str, target: str) -> None:
        self.install(alias, self._entries[target])

    def on_close(self, closer: Callable[[], Any]) -> None:
        self._closers.append(closer)

    def close(self) -> None:
        """Stop background work owned by this session. Safe to call twice."""
        if self.closed:
            return
        self.closed = True
        for closer in reversed(self._closers):
            closer()

    def get(self, name: str, default: Any = None) -> Any:
        return self._entries.get(name, default)

    def names(self) -> List[str]:
        return list(self._entries)

    def __getitem__(self, name: str) -> Callable[..., Any]:
        return self._entries[name]

    def __getattr__(self, name: str) -> Callable[..., Any]:
        entries = self.__dict__.get("_entries", {})
        try:
            return entries[name]
        except KeyError:
            raise AttributeError(f"No capability named {name!r}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


async def _sync_database(db: SQLiteClient, ctx: Context) -> None:
    try:
        await db.connect()
        await db.sync_all()
        await db.save_session(ctx.user_id, dedupe_app_state(ctx.cookies.to_app_state()), ctx.region)
        logger.info("database_connected")
    except Exception as exc:
        logger.error("database_sync_failed", error=str(exc))


def _refresh_tick(api: Api) -> Callable[[], Awaitable[None]]:
    async def tick() -> None:
        refresh = api.get(REFRESH_CAPABILITY)
        if refresh is None:
            return
        try:
            await refresh()
        except RefreshError:
            raise
        except Exception as exc:
            raise RefreshError(f"Error refreshing fb_dtsg: {exc}", raw=exc) from exc
        logger.info("fb_dtsg_refreshed")

    return tick


def assemble(
    ctx: Context,
    settings: Dict[str, Any],
    document: str,
    web: WebClient,
    factories: Optional[Iterable[CapabilityFactory]] = None,
    db: Optional[SQLiteClient] = None,
    refresh_interval: float = REFRESH_INTERVAL,
    params: Optional[SessionParams] = None,
) -> Api:
    """
    Build the capability registry for a session.

    Must run inside an event loop: the database sync and the token refresh
    are scheduled as tasks owned by the returned Api.

    Raises:
        KeyError: a factory read a sibling that is not installed yet
        ValueError: two factories share a name
    """
    defaults = RequestDefaults(web, document, ctx, params=params)
    api = Api()
    api.install("set_options", functools.partial(apply_options, settings, web=web))
    api.install("get_app_state", lambda: dedupe_app_state(ctx.cookies.to_app_state()))

    for factory in factories if factories is not None else default_capabilities():
        api.install(factory.name, factory(defaults, api, ctx))

    if LISTEN_CAPABILITY in api:
        api.alias(LISTEN_ALIAS, LISTEN_CAPABILITY)

    if "stop_listen_mqtt" in api:
        api.on_close(api["stop_listen_mqtt"])

    if db is not None:
        api.db = db
        api.sync_task = asyncio.create_task(_sync_database(db, ctx))
        api.on_close(api.sync_task.cancel)

    api.refresher = PeriodicTask(REFRESH_CAPABILITY, _refresh_tick(api), refresh_interval).start()
    api.on_close(api.refresher.cancel)
    return api
