from __future__ import annotations

import inspect
import logging
from typing import Any

from diboot.phase import Phase

logger = logging.getLogger(__name__)


async def run_hook(phase: Phase, provider: Any, instance: Any) -> None:
    """Invoke the ``phase`` hook of ``provider`` for ``instance``.

    Providers without the hook are skipped. Hooks may be plain functions or
    coroutine functions; awaitable results are awaited.
    """
    hook = getattr(provider, phase.hook, None)
    if hook is None:
        return
    try:
        result = hook(instance)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.debug(
            "%s hook of %s failed",
            phase.value,
            type(provider).__qualname__,
            exc_info=True,
        )
        raise
