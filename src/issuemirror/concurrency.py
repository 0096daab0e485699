"""Async helpers for fanning out blocking transport calls."""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


async def call_async(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Await ``func`` directly if it is async, otherwise run it in a worker thread."""
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


async def gather_settled(
    awaitables: Iterable[Awaitable[T]],
) -> tuple[list[T], list[Exception]]:
    """Run every awaitable to completion; split successes from failures.

    No concurrency cap is applied. Failures do not cancel the other tasks.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    done: list[T] = []
    failed: list[Exception] = []
    for result in results:
        if isinstance(result, Exception):
            failed.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            done.append(result)
    return done, failed


__all__ = ["call_async", "gather_settled"]
