"""Call script persistence service."""
from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from doorman.db.models import CallScriptRecord


class ScriptPersistenceService:
    """Service for storing call scripts by caller ID."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_script(self, caller_id: str) -> Optional[CallScriptRecord]:
        """Get the stored script for a caller ID."""
        result = await self.db.execute(
            select(CallScriptRecord).where(CallScriptRecord.caller_id == caller_id)
        )
        return result.scalar_one_or_none()

    async def list_scripts(self) -> List[CallScriptRecord]:
        """List all stored scripts ordered by caller ID."""
        result = await self.db.execute(
            select(CallScriptRecord).order_by(CallScriptRecord.caller_id)
        )
        return list(result.scalars().all())

    async def save_script(self, caller_id: str, payload: Any) -> CallScriptRecord:
        """Create or replace the script for a caller ID."""
        record = await self.get_script(caller_id)
        if record:
            record.payload = payload
        else:
            record = CallScriptRecord(caller_id=caller_id, payload=payload)
            self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete_script(self, caller_id: str) -> bool:
        """Delete the script for a caller ID. Returns False if none existed."""
        record = await self.get_script(caller_id)
        if not record:
            return False
        await self.db.delete(record)
        await self.db.commit()
        return True
