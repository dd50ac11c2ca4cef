"""
Transient toasts built from progress events, each with its own auto-dismiss
timer. Timers are independent of persistence; `close()` cancels every timer
so nothing fires after the owning view is gone.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from progress_engine.events import (
    DailyChallengeCompleted,
    ModuleCompleted,
    ProgressEvent,
    TrackCompleted,
    XpAwarded,
)

logger = logging.getLogger(__name__)

DismissCallback = Callable[["Toast"], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class Toast:
    id: int
    kind: str
    message: str
    amount: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "kind": self.kind, "message": self.message, "amount": self.amount}


def toast_message(event: ProgressEvent) -> str:
    if isinstance(event, XpAwarded):
        return f"+{event.amount} XP Earned"
    if isinstance(event, ModuleCompleted):
        return "Module completed"
    if isinstance(event, DailyChallengeCompleted):
        return f"Daily challenge complete, {event.streak} day streak"
    if isinstance(event, TrackCompleted):
        return "Track completed"
    return str(event)


class ToastQueue:
    def __init__(self, ttl: float = 2.0, on_dismiss: Optional[DismissCallback] = None):
        self.ttl = ttl
        self.on_dismiss = on_dismiss
        self._ids = itertools.count(1)
        self._active: Dict[int, Toast] = {}
        self._timers: Dict[int, asyncio.Task] = {}
        self._closed = False

    @property
    def active(self) -> List[Toast]:
        return [self._active[k] for k in sorted(self._active)]

    def push(self, event: ProgressEvent) -> Optional[Toast]:
        if self._closed:
            return None
        toast = Toast(
            id=next(self._ids),
            kind=event.kind.value,
            message=toast_message(event),
            amount=getattr(event, "amount", None),
        )
        self._active[toast.id] = toast
        self._timers[toast.id] = asyncio.get_running_loop().create_task(self._expire(toast))
        return toast

    def push_all(self, events: Iterable[ProgressEvent]) -> List[Toast]:
        return [t for t in (self.push(e) for e in events) if t is not None]

    async def _expire(self, toast: Toast) -> None:
        await asyncio.sleep(self.ttl)
        self._timers.pop(toast.id, None)
        await self._dismiss(toast)

    async def _dismiss(self, toast: Toast) -> None:
        if self._active.pop(toast.id, None) is None or self.on_dismiss is None:
            return
        try:
            result = self.on_dismiss(toast)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("toast dismiss callback failed toast=%s", toast.id)

    def dismiss(self, toast_id: int) -> None:
        """Drop a toast early (user closed it). No callback."""
        timer = self._timers.pop(toast_id, None)
        if timer is not None:
            timer.cancel()
        self._active.pop(toast_id, None)

    async def close(self) -> None:
        self._closed = True
        timers = list(self._timers.values())
        self._timers.clear()
        self._active.clear()
        for t in timers:
            t.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
