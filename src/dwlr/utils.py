"""
Internal utility functions for dwlr.
"""

import inspect
from datetime import datetime
from typing import (
    Any,
    Awaitable,
    Callable,
    TypeVar,
)

R = TypeVar("R")


def add_sync_version(
    async_fn: Callable[..., Awaitable[R]],
) -> Callable[..., Awaitable[R]]:
    """
    A decorator that adds a .sync attribute to an async function, allowing it
    to be called synchronously.

    The .sync version runs the async function in a new asyncio event loop.
    When the function takes a ``client`` parameter and none is passed, a
    client of the annotated class is created for the call and closed after.

    Example:
        >>> @add_sync_version
        ... async def my_async_func(x):
        ...     return x * 2

        >>> # Async usage
        >>> result = await my_async_func(5)

        >>> # Sync usage
        >>> result = my_async_func.sync(5)
    """
    # Import here to avoid circular imports
    from .sync import AsyncSyncBridge

    def sync_wrapper(*args: Any, **kwargs: Any) -> R:
        """Synchronous wrapper for the async function."""
        sig = inspect.signature(async_fn)
        client_param = sig.parameters.get("client")
        client_class = None

        if client_param:
            # The client may arrive positionally, so look at the bound arguments
            bound = sig.bind_partial(*args, **kwargs)
            if bound.arguments.get("client") is None:
                bound.arguments.pop("client", None)
                client_class = AsyncSyncBridge.extract_client_class(
                    client_param.annotation
                )
            args, kwargs = bound.args, bound.kwargs

        return AsyncSyncBridge.run_async(
            async_fn, args=args, kwargs=kwargs, client_class=client_class
        )

    async_fn.sync = sync_wrapper  # type: ignore
    return async_fn


def format_last_update(timestamp: datetime, now: datetime) -> str:
    """
    Describe how long ago a reading was taken.

    Examples: 'Just now', '5 min ago', '1 hour ago', '3 days ago'.
    """
    minutes = int((now - timestamp).total_seconds() // 60)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} min ago"
    if minutes < 1440:
        hours = minutes // 60
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    days = minutes // 1440
    return f"{days} day{'s' if days > 1 else ''} ago"
