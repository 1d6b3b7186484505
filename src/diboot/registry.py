from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from diboot.container import ProviderKey
from diboot.providers import Service

T = TypeVar("T")
R = TypeVar("R")


class Registry(Service, Generic[T]):
    """Service that aggregates every resolved instance declaring it as ``registry``.

    Members opt in with a class attribute naming the registry key::

        class Plugin(Service):
            registry = PluginRegistry

    Membership is computed from the container on each call, so it is complete
    once construction finished, i.e. inside boot and dispose hooks. A registry
    bound to a subclass still collects members declared against its key.
    Members are visited in resolution order.
    """

    def __iter__(self) -> Iterator[T]:
        for _, instance in self._members():
            yield instance

    def __len__(self) -> int:
        return sum(1 for _ in self._members())

    def for_each(self, func: Callable[[T], Any]) -> None:
        """Call ``func`` with every member."""
        for instance in self:
            func(instance)

    def map(self, func: Callable[[T], R]) -> list[R]:
        """Return ``func`` applied to every member."""
        return [func(instance) for instance in self]

    async def all_booted(self) -> None:
        """Wait until every member has booted."""
        await asyncio.gather(*(self.booted(key) for key, _ in self._members()))

    async def all_disposed(self) -> None:
        """Wait until every member has been disposed."""
        await asyncio.gather(*(self.disposed(key) for key, _ in self._members()))

    def _members(self) -> Iterator[tuple[ProviderKey, T]]:
        for key, instance in self._container.instances.items():
            if instance is not self and getattr(instance, "registry", None) is self._key:
                yield key, instance
