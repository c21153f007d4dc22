"""
Per-namespace tool batch cache.

Tool batches are generated on first use and then served from memory until
invalidated. Concurrent first requests for the same namespace share one
in-flight generation; a failed generation is reported to every waiter and
is not cached, so the next request retries.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from odata_mcp.core.logging import log_with_metadata
from odata_mcp.core.models import GenerationResult


logger = logging.getLogger(__name__)


ToolFactory = Callable[[str], Awaitable[GenerationResult]]


class ToolCache:
    """Caches generated tool batches by namespace key.

    Attributes:
        factory: Coroutine function producing the batch for a key
    """

    def __init__(self, factory: ToolFactory):
        self.factory = factory
        self._results: dict[str, GenerationResult] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._stale: set[asyncio.Task] = set()

    async def get(self, key: str) -> GenerationResult:
        """
        Return the batch for a key, generating it if needed.

        At most one generation runs per key. A generation that was invalidated
        while in flight stays registered until it settles; later callers wait
        for it and then start a fresh one.

        Args:
            key: Namespace key

        Returns:
            The cached or freshly generated batch

        Raises:
            Exception: Whatever the factory raised, for every concurrent caller
        """
        while True:
            cached = self._results.get(key)
            if cached is not None:
                return cached

            task = self._inflight.get(key)
            if task is None:
                log_with_metadata(logger, logging.DEBUG, "Generating tool batch", {'namespace': key})
                task = asyncio.ensure_future(self.factory(key))
                self._inflight[key] = task
                task.add_done_callback(lambda done, key=key: self._settle(key, done))
            elif task in self._stale:
                await asyncio.wait({task})
                continue

            # Shielded so one cancelled caller does not cancel the shared generation
            return await asyncio.shield(task)

    def _settle(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

        if task in self._stale:
            # Invalidated while in flight; drop the result
            self._stale.discard(task)
            if not task.cancelled():
                task.exception()
            return

        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            log_with_metadata(
                logger, logging.ERROR, f"Tool generation failed: {error}",
                {'namespace': key, 'error': type(error).__name__}
            )
            return

        self._results[key] = task.result()
        log_with_metadata(
            logger, logging.INFO, "Cached tool batch",
            {'namespace': key, 'tools': len(self._results[key].tools)}
        )

    def peek(self, key: str) -> Optional[GenerationResult]:
        """Return the cached batch without generating."""
        return self._results.get(key)

    def is_cached(self, key: str) -> bool:
        return key in self._results

    def invalidate(self, key: str) -> bool:
        """
        Drop the cached batch for a key.

        An in-flight generation for the key still completes for its waiters
        but its result is not cached.

        Returns:
            True if anything was dropped
        """
        dropped = self._results.pop(key, None) is not None
        task = self._inflight.get(key)
        if task is not None and task not in self._stale:
            self._stale.add(task)
            dropped = True
        if dropped:
            log_with_metadata(logger, logging.INFO, "Invalidated tool batch", {'namespace': key})
        return dropped

    def clear(self) -> None:
        self._results.clear()
        self._stale.update(self._inflight.values())

    def keys(self) -> list[str]:
        return list(self._results)
