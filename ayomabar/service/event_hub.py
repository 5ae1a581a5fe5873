"""In-process event hub for lobby lifecycle events.

Inbound adapters emit events after a lifecycle mutation has been committed.
Listeners run in background tasks, so a slow or failing listener (a Discord
message refresh, a Redis publish) never delays or undoes the mutation.

A listener declares the events it wants by annotating a parameter with an
event class; other parameters are resolved through ``fast_depends``.
"""

from collections.abc import Awaitable, Callable
import contextlib
import inspect
from typing import Annotated, Any

from ayomabar.helpers import bg_tasks
from ayomabar.models.events import LobbyEvent

from fast_depends import Depends, ValidationError, inject


class EventHub:
    def __init__(self):
        self._listeners: list[Callable[..., Awaitable[Any]]] = []

    def subscribe_event(self, listener: Callable[..., Awaitable[Any]]) -> None:
        self._listeners.append(listener)

    def listen(self, func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        """Decorator to subscribe a function to the event hub.

        Args:
            func: The async function to subscribe.

        Returns:
            The same function, now subscribed to events.
        """
        self.subscribe_event(func)
        return func

    @staticmethod
    def accepts(listener: Callable[..., Awaitable[Any]], event: LobbyEvent) -> bool:
        for param in inspect.signature(listener).parameters.values():
            if (
                isinstance(param.annotation, type)
                and issubclass(param.annotation, LobbyEvent)
                and isinstance(event, param.annotation)
            ):
                return True
        return False

    @staticmethod
    async def dispatch(listener: Callable[..., Awaitable[Any]], event: LobbyEvent) -> None:
        sig = inspect.signature(listener)
        params = []

        for param in sig.parameters.values():
            if (
                isinstance(param.annotation, type)
                and issubclass(param.annotation, LobbyEvent)
                and isinstance(event, param.annotation)
            ):
                dep = Depends(lambda: event)
                params.append(param.replace(annotation=Annotated[param.annotation, dep]))
            else:
                params.append(param)

        async def _call(*args, **kwargs):
            return await listener(*args, **kwargs)

        _call.__signature__ = sig.replace(parameters=params)  # pyright: ignore[reportFunctionMemberAccess]

        with contextlib.suppress(ValidationError):
            await inject(_call)()

    def emit(self, event: LobbyEvent) -> None:
        """Emit an event to every listener that accepts its type.

        Each matching listener is run as a background task.

        Args:
            event: The event to emit.
        """
        for listener in self._listeners:
            if self.accepts(listener, event):
                bg_tasks.add_task(self.dispatch, listener, event)


hub = EventHub()


def listen(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    return hub.listen(func)
