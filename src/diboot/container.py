from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeVar

from typing_extensions import Self

from diboot._internal.circular import CircularPlaceholder, PendingCircular, resolve_pending
from diboot._internal.hooks import run_hook
from diboot.exceptions import (
    DIBootAlreadyFinalizedError,
    DIBootAlreadyInstantiatedError,
    DIBootInvalidProviderError,
    DIBootPhaseNotActiveError,
    DIBootUnusedDependencyError,
)
from diboot.phase import Phase

if TYPE_CHECKING:
    from diboot.providers import ProviderProtocol

T = TypeVar("T")
ProviderKey = type[Any]

logger = logging.getLogger(__name__)


class Container:
    """Resolve provider classes once each and drive their boot/dispose phases.

    A container is single-use. Configure it with ``bind``/``apply``, resolve a
    root provider and boot every reachable provider with ``boot``, then tear
    them down with ``dispose``.

    Construction is synchronous: providers resolve their dependencies with
    ``use`` while they are being instantiated. A dependency that is still being
    constructed further up the call chain is handed out as a placeholder, which
    is replaced by the real instance before any boot hook runs.

    Boot and dispose hooks of all providers start in the same event-loop tick
    and run concurrently. A hook that must run after another provider's hook
    awaits ``booted``/``disposed`` for that provider.
    """

    def __init__(self) -> None:
        """Initialize an empty, unfinalized container."""
        self._finalized = False
        self._bindings: dict[ProviderKey, ProviderKey] = {}
        self._instances: dict[ProviderKey, Any] = {}
        self._instance_providers: dict[int, Any] = {}
        self._build_stack: list[ProviderKey] = []
        self._use_stack: list[ProviderKey] = []
        self._pending_circular: list[PendingCircular] = []
        self._phase_tasks: dict[Phase, dict[ProviderKey, asyncio.Task[None]]] = {}

    @property
    def finalized(self) -> bool:
        """Return whether ``boot`` was already called on this container."""
        return self._finalized

    @property
    def instances(self) -> Mapping[ProviderKey, Any]:
        """Return a read-only view of resolved instances in resolution order."""
        return MappingProxyType(self._instances)

    @property
    def building(self) -> ProviderKey | None:
        """Return the provider key whose implementation is being constructed.

        Providers read it in their constructor to learn the key they are cached
        under, which differs from their own class when they were bound.
        """
        return self._build_stack[-1] if self._build_stack else None

    def bind(self, provider: ProviderKey, implementation: ProviderKey) -> Self:
        """Use ``implementation`` whenever ``provider`` is resolved in this container.

        Args:
            provider: Provider key requested by dependents.
            implementation: Provider class constructed in its place, usually a
                subclass of ``provider``.

        Returns:
            The container, for chaining.

        Raises:
            DIBootAlreadyInstantiatedError: ``provider`` was already resolved.

        """
        if provider in self._instances:
            raise DIBootAlreadyInstantiatedError(provider)
        self._bindings[provider] = implementation
        logger.debug("Bound %r to %r", provider, implementation)
        return self

    def use(
        self,
        dependency: type[ProviderProtocol[T]],
        requester: ProviderKey | None = None,
    ) -> T:
        """Return the instance for ``dependency``, creating it on first use.

        When ``dependency`` is still under construction higher up the current
        call chain and a ``requester`` is given, a placeholder is returned and
        recorded so it can be replaced once resolution of the root completes.

        Args:
            dependency: Provider key to resolve.
            requester: Provider key of the provider asking for the dependency.
                Only used to attribute circular references.

        Returns:
            The provided value (or a placeholder under a detected cycle).

        """
        if dependency in self._instances:
            return self._instances[dependency]

        if requester is not None:
            if dependency is requester or dependency in self._use_stack:
                placeholder = CircularPlaceholder(dependency)
                self._pending_circular.append(
                    PendingCircular(
                        placeholder=placeholder,
                        requester=requester,
                        requested=dependency,
                    ),
                )
                logger.debug("Circular reference detected: %r -> %r", requester, dependency)
                return placeholder  # type: ignore[return-value]
            self._use_stack.append(requester)
            try:
                instance = self._make(dependency)
            finally:
                self._use_stack.pop()
        else:
            instance = self._make(dependency)

        self._instances[dependency] = instance
        return instance

    def provider_for(self, instance: Any) -> Any | None:
        """Return the provider object that produced ``instance``, if any."""
        return self._instance_providers.get(id(instance))

    def apply(self, func: Callable[[Self], Any]) -> Self:
        """Call ``func`` with the container and return the container.

        Useful for composing configuration steps while chaining calls on a new
        container. The return value of ``func`` is ignored.
        """
        func(self)
        return self

    async def boot(self, root: type[ProviderProtocol[T]]) -> T:
        """Resolve ``root`` with its dependencies and boot every resolved provider.

        Args:
            root: Root provider key.

        Returns:
            The instance provided for ``root``.

        Raises:
            DIBootAlreadyFinalizedError: ``boot`` was already called.

        Any exception raised by a boot hook propagates once every hook settled
        or the first failure is observed; remaining hooks keep running.

        """
        if self._finalized:
            raise DIBootAlreadyFinalizedError
        self._finalized = True
        instance = self.use(root)
        self._resolve_circular()
        await self._run_phase(Phase.BOOT)
        return instance

    async def dispose(self) -> None:
        """Run the dispose hook of every resolved provider.

        Legal on a container that was never booted, in which case there is
        nothing to dispose.
        """
        await self._run_phase(Phase.DISPOSE)

    async def booted(self, dependency: ProviderKey) -> None:
        """Wait until the boot hook of ``dependency`` has completed.

        Raises:
            DIBootPhaseNotActiveError: The boot phase has not started.
            DIBootUnusedDependencyError: ``dependency`` was never resolved.

        """
        await self._wait_for(Phase.BOOT, dependency)

    async def disposed(self, dependency: ProviderKey) -> None:
        """Wait until the dispose hook of ``dependency`` has completed.

        Raises:
            DIBootPhaseNotActiveError: The dispose phase has not started.
            DIBootUnusedDependencyError: ``dependency`` was never resolved.

        """
        await self._wait_for(Phase.DISPOSE, dependency)

    def _make(self, dependency: ProviderKey) -> Any:
        implementation = self._bindings.get(dependency, dependency)
        self._build_stack.append(dependency)
        try:
            provider = implementation(self)
        finally:
            self._build_stack.pop()
        instance = provider.provide()
        if inspect.isawaitable(instance):
            if inspect.iscoroutine(instance):
                instance.close()
            raise DIBootInvalidProviderError(implementation)
        self._instance_providers[id(instance)] = provider
        return instance

    def _resolve_circular(self) -> None:
        pending, self._pending_circular = self._pending_circular, []
        resolve_pending(pending, self._instances)

    async def _run_phase(self, phase: Phase) -> None:
        tasks = {
            key: asyncio.create_task(
                run_hook(phase, self._instance_providers.get(id(instance)), instance),
                name=f"diboot-{phase.value}-{getattr(key, '__qualname__', key)}",
            )
            for key, instance in self._instances.items()
        }
        self._phase_tasks[phase] = tasks
        logger.debug("Starting %s phase for %d providers", phase.value, len(tasks))
        # Cancelling the caller must not cancel hooks that already started.
        await asyncio.shield(asyncio.gather(*tasks.values()))
        logger.debug("Finished %s phase", phase.value)

    async def _wait_for(self, phase: Phase, dependency: ProviderKey) -> None:
        tasks = self._phase_tasks.get(phase)
        if tasks is None:
            raise DIBootPhaseNotActiveError(phase)
        task = tasks.get(dependency)
        if task is None:
            raise DIBootUnusedDependencyError(dependency, phase)
        await asyncio.shield(task)
