"""Listener registry shared by devices and the bridge client."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import inspect
from typing import Any

from .const import CallbackEventType
from .types import ListenerCallback


class ListenerMixin:
    """Per-event-type listeners called with ``(dev_id, data)``.

    Coroutine listeners are scheduled on the running loop; plain callables are
    called inline.
    """

    _listeners: dict[CallbackEventType, list[Callable[..., Any]]]
    _background_tasks: set[asyncio.Task[None]]

    def _init_listeners(self, *event_types: CallbackEventType) -> None:
        self._listeners = {event_type: [] for event_type in event_types}
        self._background_tasks = set()

    def register_listener(
        self,
        event_type: CallbackEventType,
        listener: ListenerCallback,
    ) -> Callable[[], None]:
        """Register a listener, returning a callable that removes it."""
        if event_type not in self._listeners:
            return lambda: None

        self._listeners[event_type].append(listener)

        return lambda: self._listeners[event_type].remove(listener)

    def _notify_listeners(
        self,
        event_type: CallbackEventType,
        dev_id: str,
        data: Any,
    ) -> None:
        for listener in list(self._listeners.get(event_type, [])):
            if inspect.iscoroutinefunction(listener):
                task = asyncio.create_task(listener(dev_id, data))
                self._background_tasks.add(task)
                task.add_done_callback(self._background_tasks.discard)
            else:
                listener(dev_id, data)
