"""Unit tests for auto-dismissing toasts."""
import asyncio

import pytest

from progress_engine.events import DailyChallengeCompleted, ModuleCompleted, XpAwarded, XpReason
from progress_engine.notifications import ToastQueue, toast_message


@pytest.mark.unit
class TestToastMessage:
    def test_messages(self):
        assert toast_message(XpAwarded(amount=25, reason=XpReason.BLOCK)) == "+25 XP Earned"
        assert toast_message(ModuleCompleted(module_id="mod-1")) == "Module completed"
        assert "3 day streak" in toast_message(DailyChallengeCompleted(date="2024-01-01", streak=3))


@pytest.mark.unit
class TestToastQueue:
    @pytest.mark.asyncio
    async def test_toast_expires_and_calls_back(self):
        dismissed = []
        queue = ToastQueue(ttl=0.01, on_dismiss=dismissed.append)
        toast = queue.push(XpAwarded(amount=10, reason=XpReason.PROBLEM))
        assert toast.amount == 10
        assert queue.active == [toast]
        await asyncio.sleep(0.05)
        assert queue.active == []
        assert dismissed == [toast]

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self):
        seen = []

        async def on_dismiss(toast):
            seen.append(toast.id)

        queue = ToastQueue(ttl=0.01, on_dismiss=on_dismiss)
        queue.push_all([XpAwarded(amount=1, reason=XpReason.PROBLEM), XpAwarded(amount=2, reason=XpReason.PROBLEM)])
        await asyncio.sleep(0.05)
        assert sorted(seen) == [1, 2]

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_break_queue(self):
        def boom(toast):
            raise RuntimeError("socket gone")

        queue = ToastQueue(ttl=0.01, on_dismiss=boom)
        queue.push(XpAwarded(amount=1, reason=XpReason.PROBLEM))
        await asyncio.sleep(0.05)
        assert queue.active == []

    @pytest.mark.asyncio
    async def test_manual_dismiss_skips_callback(self):
        dismissed = []
        queue = ToastQueue(ttl=0.01, on_dismiss=dismissed.append)
        toast = queue.push(XpAwarded(amount=5, reason=XpReason.PROBLEM))
        queue.dismiss(toast.id)
        await asyncio.sleep(0.05)
        assert queue.active == []
        assert dismissed == []

    @pytest.mark.asyncio
    async def test_close_cancels_timers(self):
        dismissed = []
        queue = ToastQueue(ttl=0.01, on_dismiss=dismissed.append)
        queue.push(XpAwarded(amount=5, reason=XpReason.PROBLEM))
        await queue.close()
        await asyncio.sleep(0.05)
        assert dismissed == []
        assert queue.push(XpAwarded(amount=5, reason=XpReason.PROBLEM)) is None
