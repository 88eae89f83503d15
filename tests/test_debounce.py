"""Tests for the debouncer."""

import asyncio

import pytest

from gameshelf.services.debounce import Debouncer


class TestDebouncer:
    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValueError):
            Debouncer(-0.1, lambda: None)

    @pytest.mark.asyncio
    async def test_fires_once_with_last_arguments(self) -> None:
        calls: list[str] = []
        debouncer = Debouncer(0.02, calls.append)

        debouncer.trigger("z")
        debouncer.trigger("ze")
        debouncer.trigger("zel")
        assert debouncer.pending

        await asyncio.sleep(0.08)

        assert calls == ["zel"]
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_trigger_restarts_window(self) -> None:
        calls: list[int] = []
        debouncer = Debouncer(0.05, calls.append)

        debouncer.trigger(1)
        await asyncio.sleep(0.03)
        debouncer.trigger(2)
        await asyncio.sleep(0.03)

        assert calls == []

        await asyncio.sleep(0.06)
        assert calls == [2]

    @pytest.mark.asyncio
    async def test_cancel_drops_pending_call(self) -> None:
        calls: list[int] = []
        debouncer = Debouncer(0.01, calls.append)

        debouncer.trigger(1)
        debouncer.cancel()
        await asyncio.sleep(0.04)

        assert calls == []
        assert not debouncer.pending

    @pytest.mark.asyncio
    async def test_separate_bursts_fire_separately(self) -> None:
        calls: list[str] = []
        debouncer = Debouncer(0.01, calls.append)

        debouncer.trigger("a")
        await asyncio.sleep(0.04)
        debouncer.trigger("b")
        await asyncio.sleep(0.04)

        assert calls == ["a", "b"]
