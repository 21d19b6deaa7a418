"""Process-wide structured logging for fchat.

Loggers are structlog lazy proxies bound to a component name, so level,
pause and record-size changes made through ``set_options`` apply to every
logger already handed out. The state below is the only mutable state
shared between concurrent logins.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional

import structlog

DEFAULT_LOG_RECORD_SIZE = 100

# npmlog-style names accepted by the logLevel option, mapped onto stdlib levels
LOG_LEVELS: Dict[str, int] = {
    "silly": logging.DEBUG,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "timing": logging.INFO,
    "http": logging.INFO,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "silent": logging.CRITICAL + 10,
}

_METHOD_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "msg": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}


class _LogState:
    def __init__(self) -> None:
        self.level = logging.INFO
        self.paused = False
        self.records: Deque[Dict[str, Any]] = deque(maxlen=DEFAULT_LOG_RECORD_SIZE)


_state = _LogState()


def _record_event(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    _state.records.append(dict(event_dict, log_level=method_name))
    return event_dict


def _filter_event(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    if _state.paused:
        raise structlog.DropEvent
    if _METHOD_LEVELS.get(method_name, logging.INFO) < _state.level:
        raise structlog.DropEvent
    return event_dict


# Host applications that configure structlog themselves can splice these in.
LOG_PROCESSORS = (_record_event, _filter_event)


def configure_logging(level: str = "info", record_size: int = DEFAULT_LOG_RECORD_SIZE) -> None:
    set_log_level(level)
    set_record_size(record_size)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *LOG_PROCESSORS,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
    )


def ensure_logging() -> None:
    """Configure structlog with fchat's processors unless the host already did."""
    if not structlog.is_configured():
        configure_logging()


def set_log_level(level: str) -> bool:
    """Set the active level. Returns False for an unknown level name."""
    numeric = LOG_LEVELS.get(str(level).lower())
    if numeric is None:
        return False
    _state.level = numeric
    return True


def get_log_level() -> int:
    return _state.level


def pause_logging() -> None:
    """Stop rendering events. Paused events are still kept in the record ring."""
    _state.paused = True


def resume_logging() -> None:
    _state.paused = False


def is_paused() -> bool:
    return _state.paused


def set_record_size(size: Any) -> bool:
    """Resize the record ring. Returns False when size is not an integer."""
    try:
        size = max(int(size), 0)
    except (TypeError, ValueError, OverflowError):
        return False
    if _state.records.maxlen != size:
        _state.records = deque(_state.records, maxlen=size)
    return True


def get_record_size() -> Optional[int]:
    return _state.records.maxlen


def get_log_records() -> List[Dict[str, Any]]:
    return list(_state.records)


def get_component_logger(component: str, logger: Optional[Any] = None) -> Any:
    """Get logger bound to a component name.

    Args:
        component: Component name (e.g., "login", "registry")
        logger: Optional injected logger. If None, uses a lazy structlog proxy.

    Returns:
        Logger bound to the component name
    """
    if logger is not None:
        return logger.bind(component=component)
    return structlog.get_logger(component=component)
