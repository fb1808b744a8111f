"""Unit tests for the session registry."""
import asyncio
from unittest.mock import AsyncMock

import pytest

from doorman.core.errors import ScriptNotFoundError, ScriptSourceError
from doorman.services.call_session.registry import SessionRegistry
from doorman.services.script.models import parse_script

CALLER = "+15550100001"
TWILIO_NUMBER = "+15550000000"


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def lookup():
    return AsyncMock(return_value=parse_script([["say", {"value": "Hello"}]]))


class TestGetOrCreate:
    """Test session creation and lookup."""

    @pytest.mark.asyncio
    async def test_creates_session_on_first_turn(self, registry, lookup):
        """Test a new call looks up its script by caller ID."""
        session = await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)

        lookup.assert_awaited_once_with(CALLER)
        assert session.call_sid == "CA1"
        assert session.from_number == CALLER
        assert session.to_number == TWILIO_NUMBER
        assert session.position == 0
        assert "CA1" in registry
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_returns_existing_session(self, registry, lookup):
        """Test later turns reuse the session without a new lookup."""
        first = await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)
        second = await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)

        assert first is second
        assert lookup.await_count == 1

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, registry, lookup):
        """Test different calls get different sessions."""
        first = await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)
        second = await registry.get_or_create("CA2", CALLER, TWILIO_NUMBER, lookup)

        first.advance()

        assert first is not second
        assert first.completed is True
        assert second.completed is False

    @pytest.mark.asyncio
    async def test_lookup_not_found(self, registry):
        """Test a missing script surfaces as an error and stores nothing."""
        lookup = AsyncMock(side_effect=ScriptNotFoundError(CALLER))

        with pytest.raises(ScriptNotFoundError):
            await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)

        assert "CA1" not in registry

    @pytest.mark.asyncio
    async def test_lookup_failure(self, registry):
        """Test a failing script source surfaces as an error and stores nothing."""
        lookup = AsyncMock(side_effect=ScriptSourceError(CALLER, ConnectionError("down")))

        with pytest.raises(ScriptSourceError):
            await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)

        assert registry.get("CA1") is None


class TestRemove:
    """Test discarding sessions."""

    @pytest.mark.asyncio
    async def test_remove(self, registry, lookup):
        """Test removed calls start over with a fresh lookup."""
        await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)

        registry.remove("CA1")

        assert "CA1" not in registry
        await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)
        assert lookup.await_count == 2

    def test_remove_unknown_call(self, registry):
        """Test removing an unknown call is a no-op."""
        registry.remove("CA-missing")

        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_completed_session_is_not_removed_automatically(self, registry, lookup):
        """Test the registry leaves removal to its caller."""
        session = await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)
        session.advance()

        assert session.completed is True
        assert registry.get("CA1") is session


class TestLocking:
    """Test per-call serialization."""

    @pytest.mark.asyncio
    async def test_turns_for_one_call_are_serialized(self, registry):
        """Test a second turn for the same call waits for the first."""
        events = []
        release = asyncio.Event()

        async def turn(name, wait):
            async with registry.lock("CA1"):
                events.append(f"{name} start")
                if wait:
                    await release.wait()
                events.append(f"{name} end")

        first = asyncio.create_task(turn("first", True))
        await asyncio.sleep(0)
        second = asyncio.create_task(turn("second", False))
        await asyncio.sleep(0)

        assert events == ["first start"]

        release.set()
        await asyncio.gather(first, second)

        assert events == ["first start", "first end", "second start", "second end"]

    @pytest.mark.asyncio
    async def test_turns_for_different_calls_run_concurrently(self, registry):
        """Test holding one call's lock does not block another call."""
        release = asyncio.Event()

        async def slow_turn():
            async with registry.lock("CA1"):
                await release.wait()

        task = asyncio.create_task(slow_turn())
        await asyncio.sleep(0)

        async with registry.lock("CA2"):
            entered = True

        assert entered
        release.set()
        await task

    @pytest.mark.asyncio
    async def test_locks_are_released_for_finished_calls(self, registry, lookup):
        """Test no lock is kept once a call is gone."""
        async with registry.lock("CA1"):
            await registry.get_or_create("CA1", CALLER, TWILIO_NUMBER, lookup)
            registry.remove("CA1")

        assert registry._locks == {}
        assert registry._lock_users == {}
