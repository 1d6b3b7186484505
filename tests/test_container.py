from __future__ import annotations

from typing import Any

import pytest

from diboot import (
    Container,
    DIBootAlreadyInstantiatedError,
    DIBootInvalidProviderError,
    DIBootProviderNotImplementedError,
    Provider,
    Service,
    value_provider,
)


class _Dependency(Service):
    pass


class _ExtendedDependency(_Dependency):
    pass


class _Settings:
    def __init__(self, url: str) -> None:
        self.url = url


class _SettingsProvider(Provider[_Settings]):
    def provide(self) -> _Settings:
        return _Settings("sqlite://")


class _App(Service):
    def __init__(self, container: Container) -> None:
        super().__init__(container)
        self.dependency = self.use(_Dependency)
        self.settings = self.use(_SettingsProvider)


@pytest.mark.asyncio
async def test_boot_returns_instance_of_root_service(container: Container) -> None:
    class _Root(Service):
        pass

    root = await container.boot(_Root)

    assert isinstance(root, _Root)


@pytest.mark.asyncio
async def test_use_returns_value_provided_by_provider(container: Container) -> None:
    app = await container.boot(_App)

    assert isinstance(app.dependency, _Dependency)
    assert isinstance(app.settings, _Settings)
    assert app.settings.url == "sqlite://"


def test_use_resolves_same_instance_on_subsequent_calls(container: Container) -> None:
    first = container.use(_Dependency)
    second = container.use(_Dependency)

    assert first is second


@pytest.mark.asyncio
async def test_dependencies_used_twice_share_instance(container: Container) -> None:
    class _Root(Service):
        def __init__(self, container: Container) -> None:
            super().__init__(container)
            self.a = self.use(_Dependency)
            self.b = self.use(_Dependency)

    root = await container.boot(_Root)

    assert root.a is root.b


def test_use_caches_none_values(container: Container) -> None:
    calls: list[int] = []

    class _NoneProvider(Provider[None]):
        def provide(self) -> None:
            calls.append(1)

    assert container.use(_NoneProvider) is None
    assert container.use(_NoneProvider) is None
    assert calls == [1]


@pytest.mark.asyncio
async def test_bind_uses_alternative_implementation(container: Container) -> None:
    app = await container.bind(_Dependency, _ExtendedDependency).boot(_App)

    assert isinstance(app.dependency, _ExtendedDependency)


@pytest.mark.asyncio
async def test_bind_after_boot_raises_already_instantiated(container: Container) -> None:
    await container.bind(_Dependency, _ExtendedDependency).boot(_App)

    with pytest.raises(DIBootAlreadyInstantiatedError) as exc_info:
        container.bind(_Dependency, _Dependency)

    assert exc_info.value.provider is _Dependency
    assert "already been used" in str(exc_info.value)


def test_bind_before_use_can_be_replaced(container: Container) -> None:
    class _Other(_Dependency):
        pass

    container.bind(_Dependency, _ExtendedDependency).bind(_Dependency, _Other)

    assert isinstance(container.use(_Dependency), _Other)


@pytest.mark.asyncio
async def test_value_provider_returns_value_by_identity(container: Container) -> None:
    value = {"test": True}
    constant = value_provider(value)

    class _Root(Service):
        def __init__(self, container: Container) -> None:
            super().__init__(container)
            self.value = self.use(constant)

    root = await container.boot(_Root)

    assert root.value is value
    assert container.use(constant) is value


def test_provider_from_value_creates_distinct_keys(container: Container) -> None:
    value = object()
    first = Provider.from_value(value)
    second = Provider.from_value(value)

    assert first is not second
    assert container.use(first) is value
    assert container.use(second) is value


def test_apply_calls_function_with_container(container: Container) -> None:
    applied: list[Container] = []

    result = container.apply(applied.append)

    assert result is container
    assert applied == [container]


def test_apply_ignores_return_value(container: Container) -> None:
    assert container.apply(lambda _: "ignored") is container


def test_provider_for_returns_producing_provider(container: Container) -> None:
    settings = container.use(_SettingsProvider)
    dependency = container.use(_Dependency)

    assert isinstance(container.provider_for(settings), _SettingsProvider)
    assert container.provider_for(dependency) is dependency
    assert container.provider_for(object()) is None


def test_instances_view_is_read_only_and_ordered(container: Container) -> None:
    container.use(_App)

    instances = container.instances

    assert list(instances) == [_Dependency, _SettingsProvider, _App]
    with pytest.raises(TypeError):
        instances[_Dependency] = None  # type: ignore[index]


def test_provider_without_provide_raises_not_implemented(container: Container) -> None:
    class _Abstract(Provider[int]):
        pass

    with pytest.raises(DIBootProviderNotImplementedError) as exc_info:
        container.use(_Abstract)

    assert exc_info.value.provider is _Abstract
    assert isinstance(exc_info.value, NotImplementedError)
    assert _Abstract not in container.instances


def test_async_provide_is_rejected(container: Container) -> None:
    class _AsyncProvider(Provider[Any]):
        async def provide(self) -> Any:  # type: ignore[override]
            return 1

    with pytest.raises(DIBootInvalidProviderError) as exc_info:
        container.use(_AsyncProvider)

    assert exc_info.value.provider is _AsyncProvider


def test_failing_constructor_keeps_resolution_usable(container: Container) -> None:
    class _Broken(Service):
        def __init__(self, container: Container) -> None:
            super().__init__(container)
            msg = "boom"
            raise RuntimeError(msg)

    class _Root(Service):
        def __init__(self, container: Container) -> None:
            super().__init__(container)
            self.broken = self.use(_Broken)

    with pytest.raises(RuntimeError, match="boom"):
        container.use(_Root)

    assert container._use_stack == []
    assert _Root not in container.instances
    assert isinstance(container.use(_Dependency), _Dependency)


def test_plain_class_satisfying_protocol_can_be_used(container: Container) -> None:
    class _Plain:
        def __init__(self, container: Container) -> None:
            self.container = container

        def provide(self) -> str:
            return "plain"

    assert container.use(_Plain) == "plain"
