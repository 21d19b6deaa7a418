"""
fchat - session bootstrap and capability registry for the Facebook web chat.

Key components:
- options.py: login option validation (apply_options)
- establish.py: app-state / credential session establishment
- extract.py: protocol parameters scraped from the landing document
- context.py: shared session Context
- registry.py: capability registry (Api) and token refresh task
- login.py: the login() entry point tying them together
"""

from .types import (
    ErrorCategory,
    SessionError,
    MalformedStateError,
    DeadSessionError,
    NoIdentityError,
    EstablishError,
    RefreshError,
    ConfigLoadError,
)
from .config import AppConfig, MqttConfig, DatabaseConfig, load_config, save_config
from .options import BOOLEAN_OPTIONS, apply_options, default_settings
from .cookies import CookieStore
from .http import WebClient
from .establish import establish
from .extract import SessionParams, extract
from .context import Context, build_context
from .capabilities import CapabilityFactory, capability, default_capabilities
from .registry import Api, PeriodicTask, assemble
from .login import login

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ErrorCategory",
    "SessionError",
    "MalformedStateError",
    "DeadSessionError",
    "NoIdentityError",
    "EstablishError",
    "RefreshError",
    "ConfigLoadError",
    # Config
    "AppConfig",
    "MqttConfig",
    "DatabaseConfig",
    "load_config",
    "save_config",
    # Options
    "BOOLEAN_OPTIONS",
    "apply_options",
    "default_settings",
    # Session
    "CookieStore",
    "WebClient",
    "establish",
    "SessionParams",
    "extract",
    "Context",
    "build_context",
    # Capabilities
    "CapabilityFactory",
    "capability",
    "default_capabilities",
    "Api",
    "PeriodicTask",
    "assemble",
    # Entry point
    "login",
]
