from typing import Annotated

from fastapi import APIRouter, Depends, status

from dmchain.dependencies import get_current_address, get_protocol, to_http_exception
from dmchain.errors import ProtocolError
from dmchain.schemas.responses import RelationResponse
from dmchain.services.protocol import MessagingProtocol

router = APIRouter(prefix="/follow", tags=["follow"])


@router.post("/user/{address}", status_code=status.HTTP_204_NO_CONTENT)
async def follow_user(
    address: str,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> None:
    """Follow a user.

    Args:
        address: Address to follow
        caller: The authenticated address
        protocol: The protocol instance

    Raises:
        HTTPException: If either side is inactive or the target is invalid
    """
    try:
        protocol.follow_user(caller, address)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.delete("/user/{address}", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_user(
    address: str,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> None:
    try:
        protocol.unfollow_user(caller, address)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/check/{address_a}/{address_b}", response_model=RelationResponse)
async def is_user_following(
    address_a: str,
    address_b: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> RelationResponse:
    """Check whether ``address_a`` follows ``address_b``."""
    try:
        value = protocol.is_user_following(address_a, address_b)
    except ProtocolError as e:
        raise to_http_exception(e)
    return RelationResponse(
        source=address_a.lower(), target=address_b.lower(), value=value
    )


@router.get("/user/{address}/followers", response_model=list[str])
async def get_followers(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> list[str]:
    """Get the addresses following a user.

    Args:
        address: Address whose followers to list
        protocol: The protocol instance

    Returns:
        Follower addresses, oldest follow first
    """
    try:
        return protocol.get_followers(address)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/user/{address}/following", response_model=list[str])
async def get_following(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> list[str]:
    try:
        return protocol.get_following(address)
    except ProtocolError as e:
        raise to_http_exception(e)
