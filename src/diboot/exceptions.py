from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from diboot.phase import Phase


def _provider_name(provider: Any) -> str:
    return getattr(provider, "__qualname__", None) or repr(provider)


class DIBootError(Exception):
    """Represent a base class for all diboot-specific failures.

    Catch this type when you want to handle any diboot error path without
    matching each concrete exception class individually.
    """


class DIBootAlreadyInstantiatedError(DIBootError):
    """Signal a binding change for a provider that already has an instance.

    Raised by ``Container.bind`` when the provider key was already resolved in
    the container. Bindings are a configuration step performed before ``boot``.

    Typical fix is moving ``bind`` calls before the first ``use``/``boot``.
    """

    def __init__(self, provider: Any) -> None:
        self.provider = provider
        super().__init__(
            f"Cannot change binding for {_provider_name(provider)}: "
            "the provider has already been used",
        )


class DIBootAlreadyFinalizedError(DIBootError):
    """Signal a second ``boot`` call on the same container.

    Containers are single-use: one ``boot`` optionally followed by ``dispose``.
    Create a new ``Container`` to boot another graph.
    """

    def __init__(self) -> None:
        super().__init__("Container instance cannot be booted more than once")


class DIBootPhaseNotActiveError(DIBootError):
    """Signal a phase wait issued before the phase was started.

    Raised by ``booted``/``disposed`` when called outside of ``boot``/``dispose``,
    for example from a constructor.
    """

    def __init__(self, phase: Phase) -> None:
        self.phase = phase
        super().__init__(f"Cannot call {phase.waiter}() outside of {phase.value}()")


class DIBootUnusedDependencyError(DIBootError):
    """Signal a phase wait on a provider that was never resolved.

    Only providers reachable from the booted root take part in the lifecycle
    phases. Typical fix is resolving the dependency with ``use`` in the waiting
    provider.
    """

    def __init__(self, provider: Any, phase: Phase) -> None:
        self.provider = provider
        self.phase = phase
        super().__init__(
            f"Cannot wait for unused {_provider_name(provider)} to {phase.value}",
        )


class DIBootProviderNotImplementedError(DIBootError, NotImplementedError):
    """Signal a provider whose ``provide`` method was not overridden.

    ``Provider`` subclasses must implement ``provide``. Use ``Service`` for
    classes that provide themselves.
    """

    def __init__(self, provider: Any) -> None:
        self.provider = provider
        super().__init__(f"{_provider_name(provider)}.provide() is not implemented")


class DIBootInvalidProviderError(DIBootError):
    """Signal a provider that returned an awaitable from ``provide``.

    Construction is synchronous so that circular references can be detected on
    the call stack. Move asynchronous setup into the ``boot`` hook.
    """

    def __init__(self, provider: Any) -> None:
        self.provider = provider
        super().__init__(
            f"{_provider_name(provider)}.provide() must return a value, not an awaitable; "
            "perform asynchronous setup in boot()",
        )
