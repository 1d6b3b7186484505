from __future__ import annotations

from enum import Enum


class Phase(Enum):
    """Select a container lifecycle phase.

    Each phase runs one hook per resolved provider concurrently. Providers
    order themselves inside a phase by awaiting ``booted``/``disposed`` on
    their dependencies.
    """

    BOOT = "boot"
    """Initialization pass started by ``Container.boot``."""

    DISPOSE = "dispose"
    """Teardown pass started by ``Container.dispose``."""

    @property
    def hook(self) -> str:
        """Return the provider method name invoked for this phase."""
        return self.value

    @property
    def waiter(self) -> str:
        """Return the name of the container method that waits for this phase."""
        return f"{self.value}d" if self is Phase.DISPOSE else f"{self.value}ed"
