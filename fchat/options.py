"""Login option validation.

``apply_options`` is the only writer of the settings record besides
``default_settings``. Boolean options are coerced; the handful of
non-boolean options each carry a side effect; anything else is refused.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Mapping, Optional

from fchat import _logging
from fchat.http import DEFAULT_USER_AGENT

if TYPE_CHECKING:
    from fchat.http import WebClient

logger = _logging.get_component_logger("set_options")

BOOLEAN_OPTIONS: FrozenSet[str] = frozenset([
    "online",
    "selfListen",
    "listenEvents",
    "updatePresence",
    "forceLogin",
    "autoMarkDelivery",
    "autoMarkRead",
    "listenTyping",
    "autoReconnect",
    "emitReady",
])

VALUE_OPTIONS: FrozenSet[str] = frozenset([
    "pauseLog",
    "logLevel",
    "logRecordSize",
    "pageID",
    "userAgent",
    "proxy",
])


def default_settings() -> Dict[str, Any]:
    return {
        "selfListen": False,
        "selfListenEvent": False,
        "listenEvents": False,
        "listenTyping": False,
        "updatePresence": False,
        "forceLogin": False,
        "autoMarkDelivery": True,
        "autoMarkRead": False,
        "autoReconnect": True,
        "logRecordSize": _logging.DEFAULT_LOG_RECORD_SIZE,
        "online": True,
        "emitReady": False,
        "userAgent": DEFAULT_USER_AGENT,
    }


def _set_log_level(settings: Dict[str, Any], value: Any) -> None:
    if not _logging.set_log_level(value):
        logger.warning("unknown_log_level", level=value)
    settings["logLevel"] = value


def _set_record_size(settings: Dict[str, Any], value: Any) -> None:
    if not _logging.set_record_size(value):
        logger.warning("invalid_log_record_size", size=value)
    settings["logRecordSize"] = value


def _set_proxy(settings: Dict[str, Any], value: Any, web: Optional["WebClient"]) -> None:
    if isinstance(value, str):
        settings["proxy"] = value
        if web is not None:
            web.set_proxy(value)
    else:
        settings.pop("proxy", None)
        if web is not None:
            web.set_proxy(None)


def apply_options(
    settings: Dict[str, Any],
    options: Optional[Mapping[str, Any]],
    web: Optional["WebClient"] = None,
) -> None:
    """Apply a partial options mapping to ``settings`` in place.

    Args:
        settings: Settings record to mutate
        options: User-supplied partial options
        web: Transport that receives proxy changes, if one exists yet
    """
    for key, value in (options or {}).items():
        if key in BOOLEAN_OPTIONS:
            settings[key] = bool(value)
            continue
        if key not in VALUE_OPTIONS:
            logger.warning("unrecognized_option", option=key)
            continue

        if key == "pauseLog":
            if value:
                _logging.pause_logging()
            else:
                _logging.resume_logging()
        elif key == "logLevel":
            _set_log_level(settings, value)
        elif key == "logRecordSize":
            _set_record_size(settings, value)
        elif key == "pageID":
            settings["pageID"] = str(value)
        elif key == "userAgent":
            settings["userAgent"] = value or DEFAULT_USER_AGENT
        elif key == "proxy":
            _set_proxy(settings, value, web)
