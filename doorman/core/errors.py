"""Exceptions raised by the call engine and its collaborators."""


class DoormanError(Exception):
    """Base class for recoverable failures answered with the forwarding fallback."""


class StepValidationError(DoormanError):
    """A script step is missing a required field or names an unknown command."""

    def __init__(self, command: str, field: str):
        self.command = command
        self.field = field
        super().__init__(f"[{command}] Missing or invalid required field '{field}'.")


class ScriptFormatError(DoormanError):
    """A script payload does not have the ``[[command, params], ...]`` shape."""


class ScriptLookupError(DoormanError):
    """The initial script for a caller could not be obtained."""

    def __init__(self, caller_id: str, message: str):
        self.caller_id = caller_id
        super().__init__(message)


class ScriptNotFoundError(ScriptLookupError):
    """No script is configured for the caller."""

    def __init__(self, caller_id: str):
        super().__init__(caller_id, f"No call script found for number '{caller_id}'.")


class ScriptSourceError(ScriptLookupError):
    """The script source failed while looking up a caller."""

    def __init__(self, caller_id: str, cause: Exception):
        self.cause = cause
        super().__init__(
            caller_id,
            f"Script source failed for number '{caller_id}': {type(cause).__name__}: {cause}",
        )


class OperationError(Exception):
    """A call session was driven in a way its state machine does not allow.

    This signals an integration defect rather than a caller-facing failure.
    """
