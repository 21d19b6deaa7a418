"""
Capability factories installed on every session.

The list is explicit and ordered: a factory may read siblings that appear
before it, never after.
"""
from __future__ import annotations

from typing import List, Optional

from fchat.capabilities.base import CapabilityFactory, FunctionCapability, capability
from fchat.capabilities.current_user import get_current_user_id
from fchat.capabilities.listen_mqtt import (
    Connector,
    ListenMqtt,
    ListenSession,
    Listener,
    stop_listen_mqtt,
)
from fchat.capabilities.refresh_token import refresh_fb_dtsg
from fchat.config import AppConfig


def default_capabilities(
    config: Optional[AppConfig] = None,
    connector: Optional[Connector] = None,
) -> List[CapabilityFactory]:
    config = config or AppConfig()
    reconnect = config.mqtt.reconnect_interval if config.mqtt.enabled else None
    return [
        get_current_user_id,
        refresh_fb_dtsg,
        ListenMqtt(connector=connector, reconnect_interval=reconnect),
        stop_listen_mqtt,
    ]


__all__ = [
    "CapabilityFactory",
    "FunctionCapability",
    "capability",
    "default_capabilities",
    "Connector",
    "ListenMqtt",
    "ListenSession",
    "Listener",
]
