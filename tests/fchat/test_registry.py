import asyncio

import pytest
from structlog.testing import capture_logs

from fchat.capabilities import FunctionCapability, capability, default_capabilities
from fchat.context import build_context
from fchat.database import SQLiteClient
from fchat.registry import Api, PeriodicTask, assemble
from fchat.types import RefreshError


@pytest.fixture
def session(settings, landing_html, make_store, make_web, html_page):
    web = make_web(lambda request: html_page(landing_html))
    ctx = build_context(settings, landing_html, make_store(c_user="100", xs="secret"))
    return ctx, web


def test_api_install_and_lookup():
    api = Api()
    api.install("ping", lambda: "pong")

    assert api.ping() == "pong"
    assert api["ping"] is api.ping
    assert "ping" in api
    assert api.names() == ["ping"]
    assert len(api) == 1
    with pytest.raises(AttributeError):
        api.missing
    with pytest.raises(KeyError):
        api["missing"]


def test_api_rejects_duplicate_names():
    api = Api()
    api.install("ping", lambda: "pong")
    with pytest.raises(ValueError):
        api.install("ping", lambda: "again")


@pytest.mark.parametrize("name", ["get", "close", "names", "install", "alias", "db", "_entries"])
def test_api_rejects_reserved_names(name):
    api = Api()
    with pytest.raises(ValueError):
        api.install(name, lambda: None)
    assert name not in api


@pytest.mark.asyncio
async def test_assemble_default_capabilities(session, settings, landing_html):
    ctx, web = session
    api = assemble(ctx, settings, landing_html, web, factories=default_capabilities())
    try:
        assert api.get_current_user_id() == "100"
        assert api.listen is api.listen_mqtt
        for name in ("set_options", "get_app_state", "refresh_fb_dtsg", "stop_listen_mqtt"):
            assert name in api
        assert api.refresher.running
    finally:
        api.close()


@pytest.mark.asyncio
async def test_set_options_is_bound_to_session(session, settings, landing_html):
    ctx, web = session
    api = assemble(ctx, settings, landing_html, web, factories=[])
    try:
        api.set_options({"selfListen": 1, "proxy": "http://proxy:3128"})
        assert ctx.settings["selfListen"] is True
        assert web.proxy == "http://proxy:3128"
    finally:
        api.close()


@pytest.mark.asyncio
async def test_get_app_state_is_deduplicated(session, settings, landing_html):
    ctx, web = session
    ctx.cookies.set("c_user", "other", domain="www.facebook.com")
    api = assemble(ctx, settings, landing_html, web, factories=[])
    try:
        state = api.get_app_state()
        assert [record["key"] for record in state].count("c_user") == 1
        assert {record["key"] for record in state} == {"c_user", "xs"}
    finally:
        api.close()


@pytest.mark.asyncio
async def test_factory_reads_earlier_sibling(session, settings, landing_html):
    ctx, web = session

    @capability("shout")
    def shout(defaults, api, ctx):
        current = api.get_current_user_id
        return lambda: current().upper() + "!"

    factories = default_capabilities()[:1] + [shout]
    api = assemble(ctx, settings, landing_html, web, factories=factories)
    try:
        assert api.shout() == "100!"
    finally:
        api.close()


@pytest.mark.asyncio
async def test_factory_reading_later_sibling_fails(session, settings, landing_html):
    ctx, web = session

    @capability("early")
    def early(defaults, api, ctx):
        return api["get_current_user_id"]

    with pytest.raises(KeyError):
        assemble(ctx, settings, landing_html, web, factories=[early] + default_capabilities())


@pytest.mark.asyncio
async def test_request_defaults_merge_session_fields(session, settings, landing_html):
    ctx, web = session
    captured = {}

    @capability("probe")
    def probe(defaults, api, ctx):
        captured["defaults"] = defaults
        return lambda: None

    api = assemble(ctx, settings, landing_html, web, factories=[probe])
    try:
        defaults = captured["defaults"]
        first = defaults.merge_form({"__user": "spoofed", "q": "x"})
        second = defaults.merge_form()

        assert first["__user"] == "100"
        assert first["q"] == "x"
        assert first["__req"] == "1"
        assert second["__req"] == "2"
        assert first["__rev"] == "1012345"
        assert first["fb_dtsg"] == "AQH-token-123"
        assert first["jazoest"].startswith("2")

        ctx.fb_dtsg = "NEW"
        assert defaults.merge_form()["fb_dtsg"] == "NEW"
    finally:
        api.close()


@pytest.mark.asyncio
async def test_refresh_from_document(session, settings, landing_html):
    ctx, web = session
    ctx.fb_dtsg = None
    api = assemble(ctx, settings, landing_html, web, factories=default_capabilities())
    try:
        token = await api.refresh_fb_dtsg(landing_html)
        assert token == "AQH-token-123"
        assert ctx.fb_dtsg == "AQH-token-123"
    finally:
        api.close()


@pytest.mark.asyncio
async def test_refresh_fetches_landing_page(settings, landing_html, make_store, make_web, html_page):
    web = make_web(lambda request: html_page(landing_html.replace("AQH-token-123", "FRESH")))
    ctx = build_context(settings, landing_html, make_store(c_user="100"))
    api = assemble(ctx, settings, landing_html, web, factories=default_capabilities())
    try:
        assert await api.refresh_fb_dtsg() == "FRESH"
        assert ctx.fb_dtsg == "FRESH"
        (request,) = web.requests
        assert request.url.params["__user"] == "100"
    finally:
        api.close()


@pytest.mark.asyncio
async def test_refresh_without_token_fails(session, settings, landing_html):
    ctx, web = session
    api = assemble(ctx, settings, landing_html, web, factories=default_capabilities())
    try:
        with pytest.raises(RefreshError):
            await api.refresh_fb_dtsg("<html></html>")
        assert ctx.fb_dtsg == "AQH-token-123"
    finally:
        api.close()


@pytest.mark.asyncio
async def test_refresh_failure_is_logged_and_retried(session, settings, landing_html):
    ctx, web = session
    calls = []

    def build(defaults, api, ctx):
        async def refresh():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return "ok"

        return refresh

    factories = [FunctionCapability("refresh_fb_dtsg", build)]
    with capture_logs() as logs:
        api = assemble(ctx, settings, landing_html, web, factories=factories, refresh_interval=0.01)
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        api.close()

    assert len(calls) >= 2
    failures = [e for e in logs if e["event"] == "periodic_task_failed"]
    assert failures and "boom" in failures[0]["error"]
    assert any(e["event"] == "fb_dtsg_refreshed" for e in logs)


@pytest.mark.asyncio
async def test_close_cancels_background_work(session, settings, landing_html):
    ctx, web = session
    api = assemble(ctx, settings, landing_html, web, factories=default_capabilities())
    refresher = api.refresher

    api.close()
    api.close()
    await asyncio.sleep(0.01)

    assert api.closed
    assert not refresher.running


@pytest.mark.asyncio
async def test_periodic_task_start_is_idempotent():
    ticks = []

    async def tick():
        ticks.append(1)

    task = PeriodicTask("tick", tick, 0.01)
    assert task.start() is task.start()
    await asyncio.sleep(0.05)
    task.cancel()
    await asyncio.sleep(0)
    assert ticks


@pytest.mark.asyncio
async def test_database_sync_records_session(session, settings, landing_html):
    ctx, web = session
    db = SQLiteClient(":memory:")
    api = assemble(ctx, settings, landing_html, web, factories=[], db=db)
    try:
        await api.sync_task
        row = await db.fetch_one("SELECT region FROM sessions WHERE user_id = ?", ["100"])
        assert row["region"] == "ATN"
        state = await db.load_session("100")
        assert {record["key"] for record in state} == {"c_user", "xs"}
        assert await db.load_session("999") is None
    finally:
        api.close()
        await db.disconnect()


@pytest.mark.asyncio
async def test_database_sync_failure_does_not_fail_session(session, settings, landing_html):
    ctx, web = session

    class BrokenDB:
        async def connect(self):
            raise OSError("disk full")

    with capture_logs() as logs:
        api = assemble(ctx, settings, landing_html, web, factories=[], db=BrokenDB())
        await api.sync_task
        api.close()

    errors = [e for e in logs if e["event"] == "database_sync_failed"]
    assert len(errors) == 1
    assert "disk full" in errors[0]["error"]
