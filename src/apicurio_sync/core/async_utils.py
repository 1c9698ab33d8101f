"""Async utilities for bridging blocking HTTP and file calls to coroutines."""

import asyncio
import logging
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Used to wrap blocking ``requests`` calls and file I/O so provider and
    executor code can ``await`` them.  Callers await one call at a time;
    nothing here fans out work in parallel.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        client = RegistryClient("https://registry.example.com")
        info = await run_sync(client.get_system_info)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
