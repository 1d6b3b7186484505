"""Shared pytest fixtures for diboot tests."""

import pytest

from diboot import Container


@pytest.fixture()
def container() -> Container:
    """Fresh, unfinalized container."""
    return Container()
