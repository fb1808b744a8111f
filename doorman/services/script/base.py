"""Script provider interface."""
from abc import ABC, abstractmethod
from typing import Any, Optional


class ScriptProvider(ABC):
    """Abstract base class for call script sources."""

    @abstractmethod
    async def get_script(self, caller_id: str) -> Optional[Any]:
        """Get the raw script payload for a caller, or None if there is none.

        The payload is a list of ``[command, params]`` pairs or a JSON
        document encoding one.
        """
        pass
