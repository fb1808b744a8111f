"""Call script data model.

A script is an ordered tuple of steps. Each step pairs a command name with its
parameters. ``gatherDigits`` steps hold nested scripts as their parameter
values, one per digit sequence plus a ``default`` branch, which makes a
script a tree.

Parsing is structural only: command names and required fields are checked by
the response builder when a step is executed, so branches that are never
taken are never validated.
"""
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from doorman.core.errors import ScriptFormatError


class Command(str, Enum):
    """Commands a script step may use."""

    FORWARD_CALL = "forwardCall"
    SEND_SMS = "sendSms"
    SAY = "say"
    SEND_DIGITS = "sendDigits"
    GATHER_DIGITS = "gatherDigits"
    PLAY = "play"
    HANG_UP = "hangUp"

    def __str__(self) -> str:
        return self.value


DEFAULT_BRANCH = "default"


class Step(BaseModel):
    """One instruction within a call script."""

    model_config = ConfigDict(frozen=True)

    command: str
    params: Dict[str, Any] = {}


CallScript = Tuple[Step, ...]


class BranchResolver(BaseModel):
    """Selects the script to run once the caller has entered digits."""

    model_config = ConfigDict(frozen=True)

    branches: Dict[str, CallScript] = {}
    default: CallScript = ()

    def resolve(self, digits: Optional[str]) -> CallScript:
        """Return the branch matching ``digits`` exactly, else the default branch."""
        if digits is not None and digits in self.branches:
            return self.branches[digits]
        return self.default

    @property
    def num_digits(self) -> int:
        """Length of the longest digit sequence among the branches."""
        return max((len(key) for key in self.branches), default=0)


def parse_script(payload: Any) -> CallScript:
    """Build a CallScript from a ``[[command, params], ...]`` payload.

    ``payload`` may also be a JSON document encoding that list.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise ScriptFormatError(f"Script payload is not valid JSON: {e}") from e

    if not isinstance(payload, (list, tuple)):
        raise ScriptFormatError(
            f"Script payload must be a list of steps, got {type(payload).__name__}."
        )

    return tuple(_parse_step(entry, index) for index, entry in enumerate(payload))


def _parse_step(entry: Any, index: int) -> Step:
    if isinstance(entry, str):
        entry = [entry]
    if not isinstance(entry, (list, tuple)) or not 1 <= len(entry) <= 2:
        raise ScriptFormatError(
            f"Step {index} must be a [command, params] pair, got {entry!r}."
        )

    command = entry[0]
    params = entry[1] if len(entry) == 2 else None
    if not isinstance(command, str):
        raise ScriptFormatError(f"Step {index} command must be a string, got {command!r}.")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ScriptFormatError(
            f"Step {index} ({command}) params must be an object, got {type(params).__name__}."
        )

    if command == Command.GATHER_DIGITS:
        for key in params:
            if not isinstance(key, str):
                raise ScriptFormatError(
                    f"Step {index} (gatherDigits) branch keys must be strings, got {key!r}."
                )
        params = {key: parse_script(branch) for key, branch in params.items()}

    return Step(command=command, params=params)


def dump_script(script: CallScript) -> List[list]:
    """Convert a CallScript back into its payload form."""
    payload = []
    for step in script:
        if step.command == Command.GATHER_DIGITS:
            params = {key: dump_script(branch) for key, branch in step.params.items()}
        else:
            params = dict(step.params)
        payload.append([step.command, params])
    return payload
