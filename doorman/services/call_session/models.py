"""Call session models."""
import logging
from enum import Enum
from typing import Optional

from doorman.core.errors import OperationError
from doorman.services.script.models import BranchResolver, CallScript, Step
from doorman.services.twiml.builder import ResponseBuilder
from doorman.services.twiml.constants import TWILIO_ENDPOINT

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """States of a call session."""

    RUNNING = "running"  # Executing steps of the current script
    PAUSED = "paused"  # Waiting for digits to choose the next script
    COMPLETED = "completed"  # Call has been hung up; no more turns

    def __str__(self) -> str:
        return self.value


class CallSession:
    """Traversal state for one in-progress call.

    Each call to :meth:`advance` is one webhook turn and returns one TwiML
    document. Non-terminal steps are coalesced into the same document until a
    terminal step is reached.
    """

    def __init__(
        self,
        call_sid: str,
        from_number: str,
        to_number: Optional[str],
        script: CallScript,
        action_url: str = TWILIO_ENDPOINT,
    ):
        self.call_sid = call_sid
        self.from_number = from_number
        self.to_number = to_number
        self.script = tuple(script)
        self.position = 0
        self.status = SessionStatus.RUNNING
        self.resolver: Optional[BranchResolver] = None
        self.builder = ResponseBuilder(from_number, to_number, action_url=action_url)

    @property
    def paused(self) -> bool:
        return self.status is SessionStatus.PAUSED

    @property
    def completed(self) -> bool:
        return self.status is SessionStatus.COMPLETED

    @property
    def current_step(self) -> Optional[Step]:
        """Step at the current position, or None once the script is exhausted."""
        if 0 <= self.position < len(self.script):
            return self.script[self.position]
        return None

    def advance(self, digits: Optional[str] = None) -> str:
        """
        Run the call up to its next terminal step.

        Args:
            digits: Digits entered by the caller; used only when the session
                is paused on a digit prompt.

        Returns:
            TwiML XML document for this turn
        """
        if self.completed:
            raise OperationError(f"Trying to advance completed call '{self.call_sid}'.")

        if self.paused:
            self._resume(digits)

        try:
            while True:
                step = self.current_step
                if step is None:
                    # End of the branch reached
                    result = self.builder.default_action()
                else:
                    result = self.builder.execute(step)

                if result.completes:
                    self.status = SessionStatus.COMPLETED
                    logger.debug(f"[CALL SESSION] Script exhausted, ending call - CallSid: {self.call_sid}")
                    break

                if not result.terminal:
                    self.position += 1
                    continue

                if result.resolver is not None:
                    # Resuming always starts the chosen branch from its first step
                    self.resolver = result.resolver
                    self.status = SessionStatus.PAUSED
                    logger.debug(
                        f"[CALL SESSION] Waiting for {result.resolver.num_digits} digit(s) "
                        f"at step {self.position} - CallSid: {self.call_sid}"
                    )
                else:
                    self.position += 1
                break

            return self.builder.render()
        finally:
            self.builder.reset()

    def _resume(self, digits: Optional[str]) -> None:
        """Swap in the branch selected by ``digits`` and start it from the top."""
        if self.resolver is None:
            raise OperationError(f"Call '{self.call_sid}' paused, but no branch resolver was set.")

        self.script = self.resolver.resolve(digits)
        self.position = 0
        self.resolver = None
        self.status = SessionStatus.RUNNING
        logger.debug(
            f"[CALL SESSION] Resumed with digits {digits!r}, "
            f"{len(self.script)} step(s) in branch - CallSid: {self.call_sid}"
        )
