# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Helpers for calling handlers that may be sync or async."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import inspect
from typing import Any, TypeVar


T = TypeVar("T")


async def maybe_await(value: T | Awaitable[T]) -> T:
    """Await *value* when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value  # type: ignore[return-value]


async def maybe_await_with_args(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call *fn* and await the result if it produced an awaitable."""
    return await maybe_await(fn(*args, **kwargs))


__all__ = ["maybe_await", "maybe_await_with_args"]
