"""Background task management utilities.

Fire-and-forget coroutines for work that must not hold up a response, such
as refreshing a Discord lobby message after a membership change.
"""

import asyncio
from collections.abc import Callable
import functools
import inspect
from typing import Any

from ayomabar.log import log

logger = log("BackgroundTask")


def is_async_callable(obj: Any) -> bool:
    while isinstance(obj, functools.partial):
        obj = obj.func

    return inspect.iscoroutinefunction(obj)


async def run_in_threadpool[**P, T](func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    func = functools.partial(func, *args, **kwargs)
    return await asyncio.get_running_loop().run_in_executor(None, func)


class BackgroundTasks:
    """A set of running fire-and-forget tasks.

    Failed tasks are logged when they finish; their exceptions never reach
    the code that scheduled them.
    """

    def __init__(self):
        self.tasks: set[asyncio.Task] = set()

    def add_task[**P](self, func: Callable[P, Any], *args: P.args, **kwargs: P.kwargs) -> None:
        """Schedule a function (sync or async) on the running loop.

        Args:
            func: The function to run.
            *args: Positional arguments for the function.
            **kwargs: Keyword arguments for the function.
        """
        coro = func(*args, **kwargs) if is_async_callable(func) else run_in_threadpool(func, *args, **kwargs)
        task = asyncio.create_task(coro)
        self.tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).warning(f"Background task {task.get_name()} failed: {exc}")

    async def join(self) -> None:
        """Wait until every task scheduled so far has finished."""
        while self.tasks:
            await asyncio.gather(*list(self.tasks), return_exceptions=True)

    def stop(self) -> None:
        for task in self.tasks:
            task.cancel()
        self.tasks.clear()


bg_tasks = BackgroundTasks()
