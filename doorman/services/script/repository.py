"""Script repository."""
import logging

from doorman.core.errors import ScriptNotFoundError, ScriptSourceError
from doorman.services.script.base import ScriptProvider
from doorman.services.script.models import CallScript, parse_script

logger = logging.getLogger(__name__)


class ScriptRepository:
    """Looks up and parses the initial script for a caller."""

    def __init__(self, provider: ScriptProvider):
        self.provider = provider

    async def get_script(self, caller_id: str) -> CallScript:
        """
        Get the parsed script for a caller.

        Raises:
            ScriptNotFoundError: The provider has no script for the caller
            ScriptSourceError: The provider failed
            ScriptFormatError: The payload is not a valid script
        """
        try:
            payload = await self.provider.get_script(caller_id)
        except Exception as e:
            raise ScriptSourceError(caller_id, e) from e

        if payload is None or payload == "":
            raise ScriptNotFoundError(caller_id)

        script = parse_script(payload)
        logger.debug(f"[SCRIPTS] Script found for {caller_id} - {len(script)} step(s)")
        return script
