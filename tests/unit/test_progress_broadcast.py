"""Unit tests for per-user WebSocket fan-out (sockets mocked)."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.ws.progress_broadcast import broadcast_progress, subscribe_progress, subscriber_count, unsubscribe_progress


def _socket(fails=False):
    ws = MagicMock()
    ws.send_json = AsyncMock(side_effect=RuntimeError("closed") if fails else None)
    return ws


@pytest.mark.unit
class TestProgressBroadcast:
    @pytest.mark.asyncio
    async def test_sends_to_every_socket_of_user(self):
        a, b, other = _socket(), _socket(), _socket()
        subscribe_progress("u1", a)
        subscribe_progress("u1", b)
        subscribe_progress("u2", other)
        try:
            await broadcast_progress("u1", {"type": "progress_events"})
            a.send_json.assert_awaited_once_with({"type": "progress_events"})
            b.send_json.assert_awaited_once()
            other.send_json.assert_not_awaited()
        finally:
            for uid, ws in (("u1", a), ("u1", b), ("u2", other)):
                unsubscribe_progress(uid, ws)
        assert subscriber_count("u1") == 0

    @pytest.mark.asyncio
    async def test_failed_socket_dropped(self):
        good, bad = _socket(), _socket(fails=True)
        subscribe_progress("u3", good)
        subscribe_progress("u3", bad)
        await broadcast_progress("u3", {"type": "toast_dismissed"})
        assert subscriber_count("u3") == 1
        unsubscribe_progress("u3", good)
        assert subscriber_count("u3") == 0

    @pytest.mark.asyncio
    async def test_no_subscribers_is_noop(self):
        await broadcast_progress("nobody", {"type": "progress_events"})
