"""TwiML response builder.

Translates script steps into TwiML verbs appended to a response buffer.
See: https://www.twilio.com/docs/voice/twiml
"""
from typing import Any, Callable, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from twilio.twiml.voice_response import VoiceResponse

from doorman.core.errors import StepValidationError
from doorman.services.script.models import (
    DEFAULT_BRANCH,
    BranchResolver,
    Command,
    Step,
)
from doorman.services.twiml.constants import (
    DEFAULT_LANGUAGE,
    DEFAULT_TIMEOUT,
    DEFAULT_VOICE,
    HANGUP_PAUSE_LENGTH,
    TWILIO_ENDPOINT,
)


class StepResult(BaseModel):
    """Control metadata returned for each executed step."""

    model_config = ConfigDict(frozen=True)

    # No further TwiML may follow in the same response
    terminal: bool
    # Present when the call must wait for digits before continuing
    resolver: Optional[BranchResolver] = None
    # Set only by the default action; the call is over
    completes: bool = False


class ResponseBuilder:
    """Builds the TwiML document for one call turn at a time."""

    def __init__(
        self,
        inbound_caller_id: str,
        to_number: Optional[str] = None,
        action_url: str = TWILIO_ENDPOINT,
    ):
        """
        Args:
            inbound_caller_id: Caller ID of the inbound call, forwarded on <Dial>
            to_number: Twilio number that was dialed, used as the SMS sender
            action_url: Webhook Twilio calls back after <Dial> and <Gather>
        """
        self.inbound_caller_id = inbound_caller_id
        self.to_number = to_number
        self.action_url = action_url
        self._response = VoiceResponse()
        self._handlers: Dict[str, Callable[[Mapping[str, Any]], StepResult]] = {
            Command.FORWARD_CALL.value: self.forward_call,
            Command.SEND_SMS.value: self.send_sms,
            Command.SAY.value: self.say,
            Command.SEND_DIGITS.value: self.send_digits,
            Command.GATHER_DIGITS.value: self.gather_digits,
            Command.PLAY.value: self.play,
            Command.HANG_UP.value: lambda params: self.hang_up(),
        }

    def execute(self, step: Step) -> StepResult:
        """Append the TwiML for ``step`` and return its control metadata."""
        handler = self._handlers.get(step.command)
        if handler is None:
            raise StepValidationError(step.command, "command")
        return handler(step.params)

    @staticmethod
    def _require(command: Command, params: Mapping[str, Any], field: str) -> str:
        value = params.get(field)
        if value is None or value == "":
            raise StepValidationError(command.value, field)
        return str(value)

    def forward_call(self, params: Mapping[str, Any]) -> StepResult:
        """Forward the call to ``params["value"]``.

        Twilio requests the action URL once the forwarded leg ends, so the
        script resumes with the step after this one.
        """
        number = self._require(Command.FORWARD_CALL, params, "value")

        self._response.dial(
            number,
            action=self.action_url,
            caller_id=self.inbound_caller_id,
            method="GET",
            timeout=DEFAULT_TIMEOUT,
        )
        return StepResult(terminal=True)

    def send_sms(self, params: Mapping[str, Any]) -> StepResult:
        """Send ``params["value"]`` as an SMS to ``params["to"]``."""
        to = self._require(Command.SEND_SMS, params, "to")
        message = self._require(Command.SEND_SMS, params, "value")

        self._response.sms(message, to=to, from_=self.to_number)
        return StepResult(terminal=False)

    def say(self, params: Mapping[str, Any]) -> StepResult:
        """Speak ``params["value"]``, optionally overriding voice and language."""
        text = self._require(Command.SAY, params, "value")

        self._response.say(
            text,
            voice=params.get("voice") or DEFAULT_VOICE,
            language=params.get("language") or DEFAULT_LANGUAGE,
        )
        return StepResult(terminal=False)

    def send_digits(self, params: Mapping[str, Any]) -> StepResult:
        """Play the DTMF tones for ``params["value"]``."""
        digits = self._require(Command.SEND_DIGITS, params, "value")

        self._response.play(digits=digits)
        return StepResult(terminal=False)

    def gather_digits(self, params: Mapping[str, Any]) -> StepResult:
        """Wait for the caller to key in digits and branch on them.

        ``params`` maps digit sequences to scripts and must contain a
        ``default`` branch, taken when no sequence matches. The number of
        digits requested is the length of the longest sequence.
        """
        if params.get(DEFAULT_BRANCH) is None:
            raise StepValidationError(Command.GATHER_DIGITS.value, DEFAULT_BRANCH)

        resolver = BranchResolver(
            branches={key: branch for key, branch in params.items() if key != DEFAULT_BRANCH},
            default=params[DEFAULT_BRANCH],
        )

        self._response.gather(
            action=self.action_url,
            method="GET",
            num_digits=resolver.num_digits,
            timeout=DEFAULT_TIMEOUT,
        )
        return StepResult(terminal=True, resolver=resolver)

    def play(self, params: Mapping[str, Any]) -> StepResult:
        """Play the audio file at ``params["value"]``."""
        url = self._require(Command.PLAY, params, "value")

        self._response.play(url)
        return StepResult(terminal=False)

    def hang_up(self) -> StepResult:
        """End the call after a short pause."""
        self._response.pause(length=HANGUP_PAUSE_LENGTH)
        self._response.hangup()
        return StepResult(terminal=True)

    def default_action(self) -> StepResult:
        """Used when a script runs out of steps; ends the call."""
        self.hang_up()
        return StepResult(terminal=True, completes=True)

    def reset(self) -> None:
        """Discard all generated TwiML."""
        self._response = VoiceResponse()

    def render(self) -> str:
        """Return the XML document for the TwiML generated so far."""
        return self._response.to_xml()
