from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


class CircularPlaceholder:
    """Stand-in returned for a provider that is still under construction.

    The placeholder carries no behavior. It is swapped for the real instance
    once the root resolution completes and before any boot hook runs.
    """

    __slots__ = ("requested",)

    def __init__(self, requested: Any) -> None:
        self.requested = requested

    def __repr__(self) -> str:
        name = getattr(self.requested, "__qualname__", repr(self.requested))
        return f"<CircularPlaceholder for {name}>"


@dataclass(frozen=True, slots=True)
class PendingCircular:
    """A placeholder handed to ``requester`` while ``requested`` was being built."""

    placeholder: CircularPlaceholder
    requester: Any
    requested: Any


def _iter_field_names(obj: Any) -> Iterator[str]:
    instance_dict = getattr(obj, "__dict__", None)
    if isinstance(instance_dict, dict):
        yield from list(instance_dict)
    for cls in type(obj).__mro__:
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in ("__dict__", "__weakref__"):
                yield name


def patch_placeholder(owner: Any, placeholder: CircularPlaceholder, value: Any) -> str | None:
    """Replace the first field of ``owner`` holding ``placeholder`` with ``value``.

    Only direct fields are inspected; a placeholder stored twice or nested in a
    collection keeps its other references. Returns the patched field name.
    """
    for name in _iter_field_names(owner):
        try:
            current = getattr(owner, name)
        except AttributeError:
            continue
        if current is placeholder:
            setattr(owner, name, value)
            return name
    return None


def resolve_pending(pending: list[PendingCircular], instances: dict[Any, Any]) -> None:
    for record in pending:
        owner = instances.get(record.requester)
        value = instances.get(record.requested)
        field_name = patch_placeholder(owner, record.placeholder, value)
        if field_name is None:
            logger.debug(
                "Circular reference from %r to %r was not stored in a field; left unpatched",
                record.requester,
                record.requested,
            )
            continue
        logger.debug(
            "Patched circular reference %r.%s -> %r",
            record.requester,
            field_name,
            record.requested,
        )
