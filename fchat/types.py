from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    MALFORMED_STATE = "malformed_state"
    DEAD_SESSION = "dead_session"
    NO_IDENTITY = "no_identity"
    ESTABLISH = "establish"
    REFRESH = "refresh"
    CONFIG_LOAD = "config_load"


@dataclass(eq=False)
class SessionError(Exception):
    category: ErrorCategory
    message: str
    raw: Optional[Any] = None

    def __str__(self) -> str:
        return f"{self.category.value}: {self.message}"


class MalformedStateError(SessionError):
    """Session state could not be parsed into cookie records."""

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(ErrorCategory.MALFORMED_STATE, message, raw)


class DeadSessionError(SessionError):
    """The service reports the account as blocked or checkpointed."""

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(ErrorCategory.DEAD_SESSION, message, raw)


class NoIdentityError(SessionError):
    """Neither identity cookie survived session establishment."""

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(ErrorCategory.NO_IDENTITY, message, raw)


class EstablishError(SessionError):
    """Transport failure while establishing the session."""

    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(ErrorCategory.ESTABLISH, message, raw)


class RefreshError(SessionError):
    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(ErrorCategory.REFRESH, message, raw)


class ConfigLoadError(SessionError):
    def __init__(self, message: str, raw: Optional[Any] = None):
        super().__init__(ErrorCategory.CONFIG_LOAD, message, raw)
