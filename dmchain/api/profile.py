from typing import Annotated

from fastapi import APIRouter, Depends

from dmchain.dependencies import get_current_address, get_protocol, to_http_exception
from dmchain.errors import ProtocolError
from dmchain.models.user import Profile
from dmchain.schemas.requests import CreateProfileRequest
from dmchain.services.protocol import MessagingProtocol

router = APIRouter(prefix="/profile", tags=["profile"])


@router.put("", response_model=Profile)
async def create_profile(
    body: CreateProfileRequest,
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> Profile:
    """Create the caller's profile, or update it if it exists.

    Args:
        body: Username, bio and avatar
        caller: The authenticated address
        protocol: The protocol instance

    Returns:
        The stored profile

    Raises:
        HTTPException: If the profile fields are invalid
    """
    try:
        return protocol.create_profile(caller, body.username, body.bio, body.avatar)
    except ProtocolError as e:
        raise to_http_exception(e)


@router.get("/{address}", response_model=Profile)
async def get_user_profile(
    address: str,
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> Profile:
    """Get a profile. Unknown addresses return an empty, inactive profile."""
    try:
        return protocol.get_user_profile(address)
    except ProtocolError as e:
        raise to_http_exception(e)
