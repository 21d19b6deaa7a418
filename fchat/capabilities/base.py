from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from fchat.context import Context
    from fchat.defaults import RequestDefaults
    from fchat.registry import Api


class CapabilityFactory(ABC):
    """
    Builds one capability bound to a session.

    ``name`` is the key the result is installed under. Factories run in
    list order and may read siblings already installed on ``api``.
    """

    name: str

    @abstractmethod
    def __call__(
        self, defaults: "RequestDefaults", api: "Api", ctx: "Context"
    ) -> Callable[..., Any]:
        ...


class FunctionCapability(CapabilityFactory):
    def __init__(self, name: str, build: Callable[..., Callable[..., Any]]):
        self.name = name
        self._build = build

    def __call__(self, defaults, api, ctx):
        return self._build(defaults, api, ctx)

    def __repr__(self) -> str:
        return f"FunctionCapability({self.name!r})"


def capability(name: str) -> Callable[[Callable[..., Callable[..., Any]]], FunctionCapability]:
    """Turn a ``build(defaults, api, ctx)`` function into a named factory."""

    def wrap(build: Callable[..., Callable[..., Any]]) -> FunctionCapability:
        return FunctionCapability(name, build)

    return wrap
