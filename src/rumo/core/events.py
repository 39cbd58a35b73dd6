"""Change notification channel.

Writers (holdings store, sync engine, importer) fire :data:`DATA_CHANGED`
after every committed mutation. The event carries only a source tag;
listeners re-read the blobs they display instead of applying deltas.

Hooks can be plain callables or coroutine functions. A failing hook is
logged and does not stop the others.

Usage::

    from rumo.core.events import DATA_CHANGED, EventBus

    bus = EventBus()
    unsubscribe = bus.on(DATA_CHANGED, lambda event: refresh(event.source))
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

DATA_CHANGED = "data.changed"

SOURCE_TRADES = "trades"
SOURCE_HOLDINGS = "holdings"
SOURCE_IMPORT = "import"

_WILDCARD = "*"


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time)
    source: str = ""


Hook = Callable[[Event], None] | Callable[[Event], Awaitable[None]]


def data_changed(source: str) -> Event:
    """The payload-free notification fired after a mutation."""
    return Event(name=DATA_CHANGED, source=source)


class EventBus:
    """In-process pub/sub keyed by event name, plus wildcard listeners."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Hook]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(self, event_name: str, hook: Hook) -> Callable[[], None]:
        """Subscribe *hook* to *event_name*. Returns a function that unsubscribes it."""
        self._listeners.setdefault(event_name, []).append(hook)
        return lambda: self.off(event_name, hook)

    def on_all(self, hook: Hook) -> Callable[[], None]:
        """Subscribe *hook* to every event."""
        return self.on(_WILDCARD, hook)

    def off(self, event_name: str, hook: Hook) -> None:
        hooks = self._listeners.get(event_name, [])
        if hook in hooks:
            hooks.remove(hook)

    def listener_count(self, event_name: str) -> int:
        return len(self._targets(event_name))

    def _targets(self, event_name: str) -> list[Hook]:
        return [*self._listeners.get(event_name, []), *self._listeners.get(_WILDCARD, [])]

    async def emit(self, event: Event) -> None:
        """Deliver *event*, awaiting coroutine hooks in subscription order."""
        for hook in self._targets(event.name):
            try:
                result = hook(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                logger.warning(f"Listener {hook!r} failed on {event.name}: {exc}")

    def emit_sync(self, event: Event) -> None:
        """Deliver *event* from synchronous code.

        Coroutine hooks become tasks on the running loop; with no loop
        they are skipped.
        """
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for hook in self._targets(event.name):
            if inspect.iscoroutinefunction(hook):
                if loop is None:
                    logger.debug(f"No running loop, skipping coroutine listener {hook!r}")
                    continue
                task = loop.create_task(self._guarded(hook, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                hook(event)
            except Exception as exc:
                logger.warning(f"Listener {hook!r} failed on {event.name}: {exc}")

    @staticmethod
    async def _guarded(hook: Hook, event: Event) -> None:
        try:
            await hook(event)  # type: ignore[misc]
        except Exception as exc:
            logger.warning(f"Listener {hook!r} failed on {event.name}: {exc}")
