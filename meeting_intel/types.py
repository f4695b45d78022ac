"""Shared type definitions."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable

# Standardized progress callback type
ProgressCallback = (
    Callable[[float, str], None] | Callable[[float, str], Awaitable[None]]
)


async def maybe_call(
    callback: ProgressCallback | None,
    progress: float,
    message: str,
) -> None:
    """Call progress callback if supplied."""
    if not callback:
        return

    if inspect.iscoroutinefunction(callback):
        await callback(progress, message)
    else:
        callback(progress, message)
