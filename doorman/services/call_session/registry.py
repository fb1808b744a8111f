"""Registry of in-progress call sessions."""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

from doorman.services.call_session.models import CallSession
from doorman.services.script.models import CallScript
from doorman.services.twiml.constants import TWILIO_ENDPOINT

logger = logging.getLogger(__name__)

ScriptLookup = Callable[[str], Awaitable[CallScript]]


class SessionRegistry:
    """Keyed store of active call sessions.

    Twilio waits for each response before sending the next request for a call,
    so turns for one CallSid normally arrive one at a time. :meth:`lock`
    serializes them explicitly; turns for different calls run independently.
    Sessions are only removed by the caller, once it sees ``completed``.

    A call that ends with an explicit ``hangUp`` step, or whose caller hangs up
    during a digit prompt, never reaches ``completed``: Twilio sends no further
    request after ``<Hangup>``. Those sessions stay registered for the life of
    the process.
    """

    def __init__(self, action_url: str = TWILIO_ENDPOINT):
        self.action_url = action_url
        self._sessions: Dict[str, CallSession] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, call_sid: str) -> bool:
        return call_sid in self._sessions

    @asynccontextmanager
    async def lock(self, call_sid: str) -> AsyncIterator[None]:
        """Hold the per-call lock for the duration of one turn."""
        lock = self._locks.setdefault(call_sid, asyncio.Lock())
        self._lock_users[call_sid] = self._lock_users.get(call_sid, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[call_sid] -= 1
            if not self._lock_users[call_sid]:
                del self._lock_users[call_sid]
                if call_sid not in self._sessions:
                    self._locks.pop(call_sid, None)

    def get(self, call_sid: str) -> Optional[CallSession]:
        """Get an existing call session."""
        return self._sessions.get(call_sid)

    async def get_or_create(
        self,
        call_sid: str,
        from_number: str,
        to_number: Optional[str],
        lookup: ScriptLookup,
    ) -> CallSession:
        """
        Return the session for ``call_sid``, creating it on the call's first turn.

        Args:
            call_sid: Twilio call SID
            from_number: Inbound caller ID, used as the script lookup key
            to_number: Twilio number that was dialed
            lookup: Resolves a caller ID to its initial script; its errors
                propagate and no session is stored

        Returns:
            The call session
        """
        session = self._sessions.get(call_sid)
        if session is not None:
            logger.debug(f"[REGISTRY] Call exists, resuming - CallSid: {call_sid}")
            return session

        script = await lookup(from_number)

        session = CallSession(
            call_sid=call_sid,
            from_number=from_number,
            to_number=to_number,
            script=script,
            action_url=self.action_url,
        )
        self._sessions[call_sid] = session
        logger.info(
            f"[REGISTRY] Call created - CallSid: {call_sid}, From: {from_number}, "
            f"Steps: {len(script)}"
        )
        return session

    def remove(self, call_sid: str) -> None:
        """Discard the session for a completed call."""
        if self._sessions.pop(call_sid, None) is not None:
            logger.debug(f"[REGISTRY] Call removed - CallSid: {call_sid}")
        if call_sid not in self._lock_users:
            self._locks.pop(call_sid, None)

    def clear(self) -> None:
        """Drop every session."""
        self._sessions.clear()
        self._locks.clear()
        self._lock_users.clear()
