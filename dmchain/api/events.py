from typing import Annotated

from fastapi import APIRouter, Depends, Query

from dmchain.dependencies import get_protocol
from dmchain.errors import EventLogIntegrityError
from dmchain.models.event import Event
from dmchain.schemas.responses import EventLogVerificationResponse
from dmchain.services.protocol import MessagingProtocol

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=list[Event])
async def list_events(
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
    since: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=1000)] = 100,
) -> list[Event]:
    """Read the event log in order.

    Args:
        protocol: The protocol instance
        since: Only return events with a greater sequence number
        limit: Maximum number of events to return

    Returns:
        Events in sequence (and timestamp) order
    """
    return protocol.events(since, limit)


@router.get("/verify", response_model=EventLogVerificationResponse)
async def verify_events(
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> EventLogVerificationResponse:
    """Recompute the hash chain and report the length and head it covered."""
    log = protocol.event_log
    detail = None
    with protocol.lock:
        try:
            protocol.verify_event_log()
        except EventLogIntegrityError as e:
            detail = str(e)
        length, head_hash = len(log), log.head_hash
    return EventLogVerificationResponse(
        valid=detail is None, length=length, head_hash=head_hash, detail=detail
    )
