"""Twilio voice webhook endpoint."""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from doorman.core.config import settings
from doorman.core.dependencies import (
    get_call_persistence,
    get_script_repository,
    get_session_registry,
)
from doorman.core.errors import DoormanError, OperationError
from doorman.services.call_session.registry import SessionRegistry
from doorman.services.persistence.calls import CallPersistenceService
from doorman.services.script.repository import ScriptRepository
from doorman.services.twiml.builder import ResponseBuilder
from doorman.services.twiml.constants import ANONYMOUS_CLIENT, TWILIO_ENDPOINT

router = APIRouter()
logger = logging.getLogger(__name__)


def parse_caller_id(caller_id: Optional[str]) -> Optional[str]:
    """
    Substitute the Twilio web client's caller ID with the application's number.

    Call forwarding from the web client only works with a real caller ID.
    """
    return settings.twilio_phone_number if caller_id == ANONYMOUS_CLIENT else caller_id


async def validate_twilio_request(request: Request) -> None:
    """Dependency rejecting requests that did not originate from our Twilio application."""
    if settings.is_development:
        logger.debug("[TWILIO] Development environment, assuming request is valid")
        return

    params = request.query_params
    is_secure = request.headers.get("X-Forwarded-Proto") == "https"
    is_valid = (
        params.get("AccountSid") == settings.twilio_account_sid
        and params.get("ApplicationSid") == settings.twilio_application_sid
    )

    logger.debug(f"[TWILIO] Incoming request from {parse_caller_id(params.get('From'))}")

    if not (is_secure and is_valid):
        logger.warning(
            f"[TWILIO] Rejected invalid request - Secure: {is_secure}, "
            f"CallSid: {params.get('CallSid')}"
        )
        raise HTTPException(status_code=400, detail="Invalid Twilio request")


def render_fallback(inbound_caller_id: Optional[str], to_number: Optional[str]) -> str:
    """TwiML forwarding the call to the primary phone number."""
    builder = ResponseBuilder(inbound_caller_id, to_number)
    builder.forward_call({"value": settings.primary_phone_number})
    return builder.render()


async def record_call_status(
    calls: CallPersistenceService, call_sid: str, status: str
) -> None:
    """Update the call log; failures are logged and do not affect the call."""
    try:
        await calls.update_call_status(call_sid, status, ended_at=datetime.utcnow())
    except Exception as e:
        logger.error(
            f"[TWILIO] Failed to record call status '{status}' - CallSid: {call_sid}, "
            f"Error: {type(e).__name__}: {str(e)}"
        )


@router.get(TWILIO_ENDPOINT, dependencies=[Depends(validate_twilio_request)])
async def handle_twilio_request(
    request: Request,
    CallSid: str = Query(...),
    From: str = Query(...),
    To: Optional[str] = Query(None),
    Digits: Optional[str] = Query(None),
    registry: SessionRegistry = Depends(get_session_registry),
    scripts: ScriptRepository = Depends(get_script_repository),
    calls: CallPersistenceService = Depends(get_call_persistence),
):
    """
    Return the next TwiML document for a call.

    Twilio requests this endpoint when a call connects and again after every
    <Gather> and <Dial>. Any failure forwards the call to the primary number.
    """
    inbound_caller_id = parse_caller_id(From)
    logger.info(
        f"[TWILIO] Turn received - CallSid: {CallSid}, From: {inbound_caller_id}, "
        f"Digits: {Digits!r}"
    )

    async with registry.lock(CallSid):
        try:
            is_new_call = CallSid not in registry
            session = await registry.get_or_create(
                CallSid, inbound_caller_id, To, scripts.get_script
            )

            if is_new_call:
                try:
                    await calls.create_call(CallSid, inbound_caller_id, To)
                except Exception as e:
                    logger.error(
                        f"[TWILIO] Failed to log new call - CallSid: {CallSid}, "
                        f"Error: {type(e).__name__}: {str(e)}"
                    )

            twiml = session.advance(Digits)

            if session.completed:
                logger.info(f"[TWILIO] Call is complete - CallSid: {CallSid}")
                registry.remove(CallSid)
                await record_call_status(calls, CallSid, "completed")

            return Response(content=twiml, media_type="application/xml")

        except DoormanError as e:
            logger.warning(f"[TWILIO] Request failed - CallSid: {CallSid}, Error: {e}")
        except OperationError as e:
            logger.error(f"[TWILIO] Call session misused - CallSid: {CallSid}, Error: {e}", exc_info=True)
        except Exception as e:
            logger.error(
                f"[TWILIO] Unexpected error - CallSid: {CallSid}, "
                f"Error: {type(e).__name__}: {str(e)}",
                exc_info=True,
            )

    # No script for the caller, or an unknown error occurred
    logger.info(f"[TWILIO] Forwarding call to {settings.primary_phone_number} - CallSid: {CallSid}")
    await record_call_status(calls, CallSid, "forwarded")
    return Response(
        content=render_fallback(inbound_caller_id, To),
        media_type="application/xml",
    )
