from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

from typing_extensions import Self

from diboot.exceptions import DIBootProviderNotImplementedError

if TYPE_CHECKING:
    from diboot.container import Container, ProviderKey

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
D = TypeVar("D")


class ProviderProtocol(Protocol[T_co]):
    """Capability set a container expects from a provider class.

    The container constructs the class with itself as the only argument and
    caches the result of ``provide``. Lifecycle hooks named ``boot`` and
    ``dispose`` are optional and looked up at phase time; they may return an
    awaitable.
    """

    def __init__(self, container: Container) -> None: ...

    def provide(self) -> T_co:
        """Return the value cached for the provider key, synchronously."""
        ...


class Provider(Generic[T]):
    """Base class for providers of any value, with dependency injection and hooks.

    Subclasses resolve their dependencies with ``use`` while being constructed,
    usually as attribute assignments in ``__init__``::

        class Database(Provider[Engine]):
            def __init__(self, container: Container) -> None:
                super().__init__(container)
                self.settings = self.use(Settings)

            def provide(self) -> Engine:
                return create_engine(self.settings.url)

            async def boot(self, instance: Engine) -> None:
                await self.booted(Settings)
                ...

    ``provide`` must be overridden. Use ``Service`` for classes that provide
    themselves.
    """

    def __init__(self, container: Container) -> None:
        """Store the owning container and the key this provider is built for."""
        self._container = container
        self._key: ProviderKey = container.building or type(self)

    def use(self, dependency: type[ProviderProtocol[D]]) -> D:
        """Resolve ``dependency`` from the container, tracking this provider as requester.

        Under a circular reference the returned object is a placeholder until
        construction of the whole graph completes; store it as an attribute so it
        can be replaced before boot hooks run.
        """
        return self._container.use(dependency, requester=self._key)

    def booted(self, dependency: ProviderKey) -> Awaitable[None]:
        """Return an awaitable that completes after ``dependency`` has booted."""
        return self._container.booted(dependency)

    def disposed(self, dependency: ProviderKey) -> Awaitable[None]:
        """Return an awaitable that completes after ``dependency`` has been disposed."""
        return self._container.disposed(dependency)

    def provide(self) -> T:
        """Return the value cached for this provider.

        Raises:
            DIBootProviderNotImplementedError: The subclass did not override it.

        """
        raise DIBootProviderNotImplementedError(type(self))

    async def boot(self, instance: T) -> None:
        """Initialize ``instance`` after the whole graph has been resolved."""

    async def dispose(self, instance: T) -> None:
        """Release resources held by ``instance``."""

    @classmethod
    def from_value(cls, value: D) -> type[Provider[D]]:
        """Create a provider class that always provides ``value``."""
        return value_provider(value)


class Service(Provider[Any]):
    """Provider that provides itself.

    Base class for application code, avoiding a separate provider class for
    each service.
    """

    def provide(self) -> Self:
        """Return this service instance."""
        return self


def value_provider(value: T) -> type[Provider[T]]:
    """Create a provider class that always provides ``value`` by identity.

    Every call creates a distinct provider key, so keep a reference to the
    returned class to resolve the same value more than once.
    """

    class ValueProvider(Provider[T]):
        def provide(self) -> T:
            return value

    ValueProvider.__qualname__ = f"value_provider({type(value).__qualname__})"
    return ValueProvider
