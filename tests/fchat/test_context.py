import pytest

from fchat.context import Context, build_context, generate_client_id
from fchat.types import DeadSessionError, ErrorCategory, NoIdentityError


def test_build_context_from_landing(settings, landing_html, make_store):
    ctx = build_context(settings, landing_html, make_store(c_user="100"))

    assert ctx.user_id == "100"
    assert ctx.i_user_id is None
    assert ctx.region == "ATN"
    assert ctx.mqtt_endpoint == "wss://edge-chat.facebook.com/chat?region=atn"
    assert ctx.fb_dtsg == "AQH-token-123"
    assert ctx.logged_in is True
    assert ctx.access_token == "NONE"
    assert ctx.first_listen is True
    assert ctx.mqtt_client is None
    assert ctx.settings is settings


def test_alternate_identity_wins(settings, landing_html, make_store):
    ctx = build_context(settings, landing_html, make_store(c_user="100", i_user="200"))

    assert ctx.user_id == "200"
    assert ctx.i_user_id == "200"


def test_alternate_identity_alone(settings, landing_html, make_store):
    ctx = build_context(settings, landing_html, make_store(i_user="200"))
    assert ctx.user_id == "200"


def test_no_identity_cookie(settings, landing_html, make_store):
    with pytest.raises(NoIdentityError) as exc_info:
        build_context(settings, landing_html, make_store(xs="secret"))
    assert exc_info.value.category == ErrorCategory.NO_IDENTITY


def test_checkpoint_wins_over_identity(settings, checkpoint_html, make_store):
    with pytest.raises(DeadSessionError):
        build_context(settings, checkpoint_html, make_store(c_user="100"))


def test_checkpoint_without_cookies_is_dead_not_anonymous(settings, checkpoint_html, make_store):
    with pytest.raises(DeadSessionError):
        build_context(settings, checkpoint_html, make_store())


def test_missing_endpoint_keeps_default_region(settings, make_store):
    ctx = build_context(settings, "<html></html>", make_store(c_user="100"))
    assert ctx.mqtt_endpoint is None
    assert ctx.region == "PRN"
    assert ctx.fb_dtsg is None


def test_client_id_is_31_bit_hex():
    for _ in range(50):
        value = int(generate_client_id(), 16)
        assert 0 <= value < 2**31


def test_context_field_set_is_fixed(settings, landing_html, make_store):
    ctx = build_context(settings, landing_html, make_store(c_user="100"))
    with pytest.raises(AttributeError):
        ctx.unknown_field = 1


def test_mutation_counter(make_store, settings):
    ctx = Context(user_id="1", client_id="a", cookies=make_store(), settings=settings)
    assert ctx.next_mutation_id() == 1
    assert ctx.next_mutation_id() == 2
