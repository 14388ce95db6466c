from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from poster_fusion.config import settings

logger = logging.getLogger(__name__)

F = TypeVar("F")
R = TypeVar("R")


class SuggestionDebouncer(Generic[F, R]):
    """
    Trailing-edge, single-flight debounce over a changing file set.

    Each change bumps a generation counter and restarts the quiet-period timer;
    when the timer survives the quiet period, one request is issued for that
    generation's files. Anything that finishes for an older generation, or
    after close(), is dropped. Request failures are logged and swallowed.

    Must be driven from inside a running event loop.
    """

    def __init__(
        self,
        request: Callable[[Sequence[F]], Awaitable[R]],
        on_result: Callable[[R], None],
        on_clear: Callable[[], None] | None = None,
        quiet_period: float | None = None,
    ) -> None:
        self._request = request
        self._on_result = on_result
        self._on_clear = on_clear
        self.quiet_period = settings.suggestion_quiet_period_s if quiet_period is None else quiet_period
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._in_progress = False
        self._closed = False

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def watch(self, files: Sequence[F]) -> None:
        if self._closed:
            return
        self._cancel()
        if not files:
            if self._on_clear is not None:
                self._on_clear()
            return
        self._task = asyncio.get_running_loop().create_task(self._run(self._generation, list(files)))

    def close(self) -> None:
        self._closed = True
        self._cancel()

    def _cancel(self) -> None:
        self._generation += 1
        self._in_progress = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and not self._closed

    async def _run(self, generation: int, files: list[F]) -> None:
        await asyncio.sleep(self.quiet_period)
        if not self._is_current(generation):
            return

        self._in_progress = True
        try:
            result = await self._request(files)
        except asyncio.CancelledError:
            raise
        except Exception:
            # Suggestions are a convenience; a failure must not block generate/edit.
            logger.warning("concept suggestion failed", exc_info=True)
            return
        finally:
            if generation == self._generation:
                self._in_progress = False

        if not self._is_current(generation):
            logger.debug("dropping superseded suggestion (generation %s)", generation)
            return
        self._on_result(result)
