"""
Synchronous bridge for the async parts of dwlr.

The data core (normalizer, classifier, aggregator) is synchronous already.
Only the HTTP client and the convenience functions built on it are async;
this module lets blocking code call them.

Usage:
    # Instead of this async code:
    async with TelemetryClient() as client:
        snapshot = await get_station_snapshot(client=client)

    # Use this sync code:
    from dwlr.sync import get_station_snapshot_sync
    snapshot = get_station_snapshot_sync()
"""

import asyncio
import inspect
from datetime import datetime
from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    Callable,
    Optional,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from .policies import DashboardHealthPolicy, HealthPolicy

if TYPE_CHECKING:
    from .api.convenience import Snapshot

R = TypeVar("R")


class AsyncSyncBridge:
    """Handles conversion of async functions to synchronous versions.

    This class provides utilities for running async code synchronously,
    managing event loops, and handling client instantiation.
    """

    @staticmethod
    def run_async(
        async_fn: Callable[..., Awaitable[R]],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        client_class: Optional[type] = None,
    ) -> R:
        """Run an async function synchronously.

        Args:
            async_fn: Async function to run
            args: Positional arguments for the function
            kwargs: Keyword arguments for the function
            client_class: Optional client class to instantiate if not provided

        Returns:
            Result of running the async function

        Raises:
            RuntimeError: If called from within an existing event loop
        """
        if kwargs is None:
            kwargs = {}

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            pass
        else:
            raise RuntimeError(
                "Cannot use sync version from within an existing asyncio event loop. "
                "Use the async version instead."
            )

        temp_client = None
        if client_class:
            sig = inspect.signature(async_fn)
            client_param = sig.parameters.get("client")
            if client_param and "client" not in kwargs:
                temp_client = client_class()
                kwargs["client"] = temp_client

        async def _call_and_cleanup() -> R:
            try:
                return await async_fn(*args, **kwargs)
            finally:
                if temp_client:
                    await temp_client.close()

        return asyncio.run(_call_and_cleanup())

    @staticmethod
    def extract_client_class(annotation: Any) -> Optional[type]:
        """Extract client class from type annotation.

        Handles Optional, Union, and direct type annotations.
        """
        if annotation is None or annotation is inspect.Parameter.empty:
            return None

        origin = get_origin(annotation)
        if origin is Union:
            args = get_args(annotation)
            non_none_args = [arg for arg in args if arg is not type(None)]
            if non_none_args and isinstance(non_none_args[0], type):
                return non_none_args[0]
        elif isinstance(annotation, type):
            return annotation

        return None


def get_station_snapshot_sync(
    client: Optional[Any] = None,
    now: Optional[datetime] = None,
    policy: HealthPolicy = DashboardHealthPolicy,
) -> "Snapshot":
    """Synchronous version of get_station_snapshot."""
    from .api.convenience import get_station_snapshot

    return get_station_snapshot.sync(client=client, now=now, policy=policy)  # type: ignore
