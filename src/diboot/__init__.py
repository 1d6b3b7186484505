from diboot.container import Container
from diboot.exceptions import (
    DIBootAlreadyFinalizedError,
    DIBootAlreadyInstantiatedError,
    DIBootError,
    DIBootInvalidProviderError,
    DIBootPhaseNotActiveError,
    DIBootProviderNotImplementedError,
    DIBootUnusedDependencyError,
)
from diboot.phase import Phase
from diboot.providers import Provider, ProviderProtocol, Service, value_provider
from diboot.registry import Registry

__all__ = [
    "Container",
    "DIBootAlreadyFinalizedError",
    "DIBootAlreadyInstantiatedError",
    "DIBootError",
    "DIBootInvalidProviderError",
    "DIBootPhaseNotActiveError",
    "DIBootProviderNotImplementedError",
    "DIBootUnusedDependencyError",
    "Phase",
    "Provider",
    "ProviderProtocol",
    "Registry",
    "Service",
    "value_provider",
]
