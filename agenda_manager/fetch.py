"""
Async fetch hook: load data from a service on mount and again whenever the
dependencies change.

Only the latest request may write its result. Starting a new request cancels
the one in flight, and any result that still arrives for an older generation,
or after close(), is dropped. A failed request keeps the last good data.
"""
import asyncio
import inspect
import logging
from typing import Any, Dict, Optional, Sequence

logger = logging.getLogger(__name__)

IDLE = "idle"
LOADING = "loading"
LOADED = "loaded"
FAILED = "failed"


class DataFetch:
    """
    Fetch state for one service call.

    Example:
        events = DataFetch(event_service, "get_by_dj", args=[dj_id], deps=[dj_id])
        await events.mount()
        await events.update(args=[other_id], deps=[other_id])
    """

    def __init__(self, service: Any, method: str, args: Sequence = (), deps: Sequence = ()):
        if not callable(getattr(service, method, None)):
            raise AttributeError(f"{type(service).__name__} has no method {method!r}")
        self.service = service
        self.method = method
        self.args = tuple(args)
        self.deps = tuple(deps)
        self.data: Any = None
        self.error: Optional[BaseException] = None
        self.status = IDLE
        self._generation = 0
        self._task: Optional[asyncio.Future] = None
        self._mounted = False
        self._closed = False
        self._loaded = False

    @property
    def loading(self) -> bool:
        return self.status == LOADING

    def state(self) -> Dict[str, Any]:
        return {"data": self.data, "loading": self.loading, "error": self.error, "status": self.status}

    async def mount(self) -> Any:
        """First fetch."""
        self._mounted = True
        return await self.refresh()

    async def update(self, deps: Sequence, args: Optional[Sequence] = None) -> Any:
        """Refetch if deps changed since the last fetch. Mounts on first call."""
        deps = tuple(deps)
        if args is not None:
            self.args = tuple(args)
        if self._mounted and deps == self.deps:
            return self.data
        self.deps = deps
        return await self.mount()

    async def refresh(self) -> Any:
        """Fetch now, superseding any request in flight."""
        if self._closed:
            return self.data

        self._generation += 1
        generation = self._generation
        if self._task is not None and not self._task.done():
            self._task.cancel()

        self.status = LOADING
        task = asyncio.ensure_future(self._call(self.args))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if not self._is_current(generation):
                logger.debug(f"{self.method} generation {generation} superseded")
                return self.data
            # Cancelled by the caller: leave a settled status behind
            self.status = LOADED if self._loaded else IDLE
            raise
        except Exception as e:
            if self._is_current(generation):
                self.error = e
                self.status = FAILED
                logger.warning(f"{self.method}{self.args} failed: {e}")
            return self.data

        if self._is_current(generation):
            self.data = result
            self.error = None
            self.status = LOADED
            self._loaded = True
        else:
            logger.debug(f"Discarding stale {self.method} result (generation {generation})")
        return self.data

    def close(self) -> None:
        """Unmount: late results are ignored from now on."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _call(self, args: tuple) -> Any:
        fn = getattr(self.service, self.method)
        if inspect.iscoroutinefunction(fn):
            return await fn(*args)
        return await asyncio.to_thread(fn, *args)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self._closed
