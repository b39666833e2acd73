from typing import Annotated

from fastapi import APIRouter, Depends, status

from dmchain.dependencies import get_current_address, get_protocol, to_http_exception
from dmchain.errors import ProtocolError
from dmchain.schemas.responses import RelationResponse
from dmchain.services.protocol import MessagingProtocol

router = APIRouter(prefix="/block", tags=["block"])


@router.post("/user/{address}", status_code=status.HTTP_204_NO_CONTENT)
async def block_user(
    address: str,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> None:
    """Block a user.

    Args:
        address: Address to block
        caller: The authenticated address
        protocol: The protocol instance

    Raises:
        HTTPException: If the caller is inactive or the target is invalid
    """
    try:
        protocol.block_user(caller, address)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.delete("/user/{address}", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_user(
    address: str,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> None:
    """Unblock a user.

    Raises:
        HTTPException: If the caller does not block the target
    """
    try:
        protocol.unblock_user(caller, address)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/check/{address_a}/{address_b}", response_model=RelationResponse)
async def is_user_blocked(
    address_a: str,
    address_b: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> RelationResponse:
    """Check whether ``address_a`` blocks ``address_b``."""
    try:
        value = protocol.is_user_blocked(address_a, address_b)
    except ProtocolError as e:
        raise to_http_exception(e)
    return RelationResponse(
        source=address_a.lower(), target=address_b.lower(), value=value
    )


@router.get("/user/{address}/blocked", response_model=list[str])
async def get_blocked_users(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> list[str]:
    """Get the addresses blocked by a user, oldest block first."""
    try:
        return protocol.get_blocked_users(address)
    except ProtocolError as e:
        raise to_http_exception(e)
