"""WebSocket broadcast for per-user progress events."""

from api.ws.progress_broadcast import broadcast_progress, subscribe_progress, unsubscribe_progress

__all__ = ["broadcast_progress", "subscribe_progress", "unsubscribe_progress"]
