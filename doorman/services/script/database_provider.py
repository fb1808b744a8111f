"""Database-backed script provider."""
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from doorman.services.persistence.scripts import ScriptPersistenceService
from doorman.services.script.base import ScriptProvider


class DatabaseScriptProvider(ScriptProvider):
    """Script provider reading payloads from the call_scripts table."""

    def __init__(self, db: AsyncSession):
        self.persistence = ScriptPersistenceService(db)

    async def get_script(self, caller_id: str) -> Optional[Any]:
        """Get the script payload for a caller."""
        record = await self.persistence.get_script(caller_id)
        return record.payload if record else None
