"""Call script admin endpoints."""
import logging
import secrets
from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from doorman.core.config import settings
from doorman.core.errors import ScriptFormatError
from doorman.db.database import get_db
from doorman.services.persistence.scripts import ScriptPersistenceService
from doorman.services.script.models import dump_script, parse_script

router = APIRouter()
logger = logging.getLogger(__name__)


class ScriptRequest(BaseModel):
    """Script create/replace request."""
    script: List[Any]


class ScriptResponse(BaseModel):
    """Stored script response."""
    caller_id: str
    script: List[Any]
    steps: int
    updated_at: Optional[datetime] = None


async def require_admin(x_admin_token: Optional[str] = Header(None)) -> bool:
    """Dependency to require the admin token."""
    if not settings.admin_token:
        raise HTTPException(status_code=503, detail="Admin API is disabled")
    if not x_admin_token or not secrets.compare_digest(x_admin_token, settings.admin_token):
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return True


def get_script_persistence(db: AsyncSession = Depends(get_db)) -> ScriptPersistenceService:
    """Get script persistence service."""
    return ScriptPersistenceService(db)


def to_response(record) -> ScriptResponse:
    return ScriptResponse(
        caller_id=record.caller_id,
        script=record.payload,
        steps=len(record.payload),
        updated_at=record.updated_at,
    )


@router.get(
    "/api/scripts",
    response_model=List[ScriptResponse],
    dependencies=[Depends(require_admin)],
)
async def list_scripts(
    persistence: ScriptPersistenceService = Depends(get_script_persistence),
):
    """List stored call scripts."""
    records = await persistence.list_scripts()
    logger.info(f"[SCRIPTS API] Listed {len(records)} script(s)")
    return [to_response(record) for record in records]


@router.get(
    "/api/scripts/{caller_id}",
    response_model=ScriptResponse,
    dependencies=[Depends(require_admin)],
)
async def get_script(
    caller_id: str,
    persistence: ScriptPersistenceService = Depends(get_script_persistence),
):
    """Get the call script for a caller ID."""
    record = await persistence.get_script(caller_id)
    if not record:
        raise HTTPException(status_code=404, detail=f"No script for {caller_id}")
    return to_response(record)


@router.put(
    "/api/scripts/{caller_id}",
    response_model=ScriptResponse,
    dependencies=[Depends(require_admin)],
)
async def put_script(
    caller_id: str,
    body: ScriptRequest,
    persistence: ScriptPersistenceService = Depends(get_script_persistence),
):
    """Create or replace the call script for a caller ID."""
    try:
        payload = dump_script(parse_script(body.script))
    except ScriptFormatError as e:
        logger.warning(f"[SCRIPTS API] Rejected script for {caller_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    record = await persistence.save_script(caller_id, payload)
    logger.info(f"[SCRIPTS API] Saved script for {caller_id} ({len(payload)} step(s))")
    return to_response(record)


@router.delete("/api/scripts/{caller_id}", dependencies=[Depends(require_admin)])
async def delete_script(
    caller_id: str,
    persistence: ScriptPersistenceService = Depends(get_script_persistence),
):
    """Delete the call script for a caller ID."""
    if not await persistence.delete_script(caller_id):
        raise HTTPException(status_code=404, detail=f"No script for {caller_id}")
    logger.info(f"[SCRIPTS API] Deleted script for {caller_id}")
    return {"success": True}
