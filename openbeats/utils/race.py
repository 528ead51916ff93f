"""First-success race over concurrent attempts"""

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from ..pkg.logger import logger

T = TypeVar("T")


class RaceExhaustedError(Exception):
    """Every attempt in a race failed"""

    def __init__(self, errors: Dict[str, BaseException]):
        self.errors = errors
        summary = ", ".join(f"{label}: {type(err).__name__}" for label, err in errors.items())
        super().__init__(f"All {len(errors)} attempts failed ({summary})")


async def first_success(
    attempts: Dict[str, Callable[[], Awaitable[T]]],
    timeout: Optional[float] = None,
) -> Tuple[str, T]:
    """
    Start every attempt concurrently and return ``(label, result)`` of the
    first one to finish without raising.

    Each attempt is bounded by ``timeout``. As soon as one succeeds the
    others are cancelled and their cancellation is awaited before returning,
    so a losing attempt can never complete afterwards and cause side effects.
    Raises RaceExhaustedError (with the per-label errors) when all fail.
    """
    if not attempts:
        raise RaceExhaustedError({})

    tasks: Dict[asyncio.Task, str] = {}
    for label, factory in attempts.items():
        coro = factory() if timeout is None else asyncio.wait_for(factory(), timeout=timeout)
        tasks[asyncio.ensure_future(coro)] = label

    errors: Dict[str, BaseException] = {}
    pending = set(tasks)
    try:
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                label = tasks[task]
                if task.cancelled():
                    errors[label] = asyncio.CancelledError()
                    continue
                error = task.exception()
                if error is None:
                    return label, task.result()
                errors[label] = error
                logger.debug(f"Race attempt {label} failed: {type(error).__name__}: {error}")

        raise RaceExhaustedError(errors)
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        # Losers that finished in the same tick are discarded; mark their errors retrieved
        for task in tasks:
            if task.done() and not task.cancelled():
                task.exception()
