"""Fire-and-forget execution of notification fan-out."""
from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger

from soundshare.core.metrics import set_notification_tasks_inflight


class NotificationTaskRunner:
    """Runs fan-out coroutines without blocking the HTTP response.

    Tasks are referenced until they finish so they cannot be garbage collected
    mid-flight, and ``drain`` lets shutdown wait for them instead of dropping them.
    Failures are logged and never reach the request that scheduled them.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def inflight(self) -> int:
        return len(self._tasks)

    def schedule(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(self._guard(coro, name), name=name)
        self._tasks.add(task)
        set_notification_tasks_inflight(len(self._tasks))
        task.add_done_callback(self._forget)
        return task

    def _forget(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        set_notification_tasks_inflight(len(self._tasks))

    @staticmethod
    async def _guard(coro: Coroutine[Any, Any, Any], name: str) -> Any:
        try:
            return await coro
        except asyncio.CancelledError:
            logger.bind(task=name).warning("notification_task_cancelled")
            raise
        except Exception:
            logger.bind(task=name).exception("notification_task_failed")
            return None

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for every scheduled task; cancel stragglers after ``timeout``."""

        while self._tasks:
            pending = list(self._tasks)
            _, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                logger.bind(pending=len(not_done)).warning("notification_tasks_drain_timeout")
                for task in not_done:
                    task.cancel()
                await asyncio.gather(*not_done, return_exceptions=True)
                return


notification_tasks = NotificationTaskRunner()

__all__ = ["NotificationTaskRunner", "notification_tasks"]
