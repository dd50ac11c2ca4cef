"""
In-memory WebSocket subscribers per user id.
Progress events and toast lifecycle messages are pushed to every open
connection of that user (several tabs or devices).
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)

# user_id -> set of WebSocket connections
_subscribers: dict[str, set[WebSocket]] = {}


def subscribe_progress(user_id: str, ws: WebSocket) -> None:
    _subscribers.setdefault(user_id, set()).add(ws)


def unsubscribe_progress(user_id: str, ws: WebSocket) -> None:
    if user_id in _subscribers:
        _subscribers[user_id].discard(ws)
        if not _subscribers[user_id]:
            del _subscribers[user_id]


def subscriber_count(user_id: str) -> int:
    return len(_subscribers.get(user_id, ()))


async def broadcast_progress(user_id: str, payload: dict[str, Any]) -> None:
    """
    Send payload to all WebSockets of this user. Connections that fail to
    receive are dropped.
    """
    if user_id not in _subscribers:
        return
    dead: set[WebSocket] = set()
    for ws in list(_subscribers[user_id]):
        try:
            await ws.send_json(payload)
        except Exception as e:
            logger.info("dropping progress subscriber user=%s: %s", user_id, e)
            dead.add(ws)
    for ws in dead:
        _subscribers[user_id].discard(ws)
    if user_id in _subscribers and not _subscribers[user_id]:
        del _subscribers[user_id]
