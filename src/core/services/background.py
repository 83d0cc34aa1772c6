"""Cola de tareas fire-and-forget (auditoría, análisis).

Cada tarea queda referenciada hasta terminar (asyncio solo guarda
referencias débiles) y sus excepciones se registran sin propagarse.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    def submit(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("background task %s cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            logger.error("background task %s failed: %s", task.get_name(), exc, exc_info=exc)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Espera a que terminen todas las tareas (incluidas las encoladas mientras tanto)."""

        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                break
            await asyncio.wait(pending)
        # Deja correr los done-callbacks ya programados.
        await asyncio.sleep(0)
