from typing import Annotated

from fastapi import APIRouter, Depends, status

from dmchain.dependencies import get_current_address, get_protocol, to_http_exception
from dmchain.errors import ProtocolError
from dmchain.models.message import Message
from dmchain.models.report import Report
from dmchain.schemas.requests import ReportMessageRequest, SendMessageRequest
from dmchain.schemas.responses import CountResponse, MessageIdResponse
from dmchain.services.protocol import MessagingProtocol

router = APIRouter(prefix="/messages", tags=["messages"])

MAX_PAGE_SIZE = 100


@router.post(
    "", response_model=MessageIdResponse, status_code=status.HTTP_201_CREATED
)
async def send_message(
    body: SendMessageRequest,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> MessageIdResponse:
    """Send a message from the caller.

    Args:
        body: Recipient, content, message type and optional fee
        caller: The authenticated address
        protocol: The protocol instance

    Returns:
        The id of the new message

    Raises:
        HTTPException: If any send precondition fails
    """
    try:
        message_id = protocol.send_message(
            caller, body.recipient, body.content, body.message_type, body.fee
        )
    except ProtocolError as e:
        raise to_http_exception(e)
    return MessageIdResponse(message_id=message_id)


@router.get("/count", response_model=CountResponse)
async def get_total_message_count(
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> CountResponse:
    return CountResponse(count=protocol.get_total_message_count())


@router.get("/user/{address}", response_model=list[int])
async def get_user_messages(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
    offset: int = 0,
    limit: int = 50,
) -> list[int]:
    """Get the ids of messages sent or received by an address, oldest first.

    Args:
        address: Address whose messages to list
        protocol: The protocol instance
        offset: Number of ids to skip, negative values count as 0
        limit: Maximum number of ids to return, capped at MAX_PAGE_SIZE

    Returns:
        Message ids in insertion order
    """
    try:
        return protocol.get_user_messages(address, offset, min(limit, MAX_PAGE_SIZE))
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/user/{address}/count", response_model=CountResponse)
async def get_user_message_count(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> CountResponse:
    try:
        return CountResponse(count=protocol.get_user_message_count(address))
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/user/{address}/conversations", response_model=list[int])
async def get_user_conversations(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> list[int]:
    """Get the ids of conversations an address takes part in, oldest first."""
    try:
        return protocol.get_user_conversations(address)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/conversation/{address_a}/{address_b}", response_model=list[int])
async def get_conversation(
    address_a: str,
    address_b: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
    offset: int = 0,
    limit: int = 50,
) -> list[int]:
    """Get the ids of non-deleted messages exchanged between two addresses."""
    try:
        return protocol.get_conversation(
            address_a, address_b, offset, min(limit, MAX_PAGE_SIZE)
        )
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/{message_id}", response_model=Message)
async def get_message(
    message_id: int,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> Message:
    """Get a message by id, including deleted and reported ones.

    Raises:
        HTTPException: If the message does not exist
    """
    try:
        return protocol.get_message(message_id)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: int,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> None:
    """Delete one of the caller's messages.

    Raises:
        HTTPException: If the message does not exist, belongs to someone else
            or is already deleted
    """
    try:
        protocol.delete_message(caller, message_id)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.post("/{message_id}/report", response_model=Message)
async def report_message(
    message_id: int,
    body: ReportMessageRequest,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> Message:
    """Report a message the caller sent or received.

    Raises:
        HTTPException: If the message does not exist, the caller is not a
            participant or the message is already reported
    """
    try:
        return protocol.report_message(caller, message_id, body.reason)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/{message_id}/reports", response_model=list[Report])
async def get_message_reports(
    message_id: int,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> list[Report]:
    """Get the moderation reports filed against a message.

    Raises:
        HTTPException: If the message does not exist
    """
    try:
        return protocol.get_message_reports(message_id)
    except ProtocolError as e:
        raise to_http_exception(e)
