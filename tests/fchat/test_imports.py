def test_root_imports():
    from fchat import login, Api, Context, CookieStore  # noqa: F401


def test_capability_imports():
    from fchat.capabilities import CapabilityFactory, capability, default_capabilities  # noqa: F401


def test_all_exports():
    """Verify all documented exports are available."""
    import fchat

    for name in fchat.__all__:
        assert getattr(fchat, name) is not None


def test_default_capability_order():
    from fchat.capabilities import default_capabilities

    names = [factory.name for factory in default_capabilities()]
    assert names == ["get_current_user_id", "refresh_fb_dtsg", "listen_mqtt", "stop_listen_mqtt"]
