import logging

from fastapi import HTTPException, Request, status

from dmchain.errors import (
    AlreadyDeletedError,
    AlreadyReportedError,
    EmptyVaultError,
    EventStoreError,
    ForbiddenError,
    InvalidTargetError,
    NotActiveError,
    NotBlockedError,
    NotFollowingError,
    NotFoundError,
    ProtocolError,
    ValidationError,
)
from dmchain.services.auth import AuthService, InvalidTokenError, TokenExpiredError
from dmchain.services.protocol import MessagingProtocol

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[ProtocolError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidTargetError, status.HTTP_400_BAD_REQUEST),
    (NotActiveError, status.HTTP_403_FORBIDDEN),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyDeletedError, status.HTTP_409_CONFLICT),
    (AlreadyReportedError, status.HTTP_409_CONFLICT),
    (NotBlockedError, status.HTTP_409_CONFLICT),
    (NotFollowingError, status.HTTP_409_CONFLICT),
    (EmptyVaultError, status.HTTP_409_CONFLICT),
    (EventStoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def to_http_exception(error: ProtocolError) -> HTTPException:
    """Translate a rejected protocol operation into an HTTP error.

    Args:
        error: The exception raised by the protocol

    Returns:
        HTTPException carrying the matching status code and the error message
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            break
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    logger.warning("%s rejected: %s", type(error).__name__, error)
    return HTTPException(status_code=status_code, detail=str(error))


def get_protocol(request: Request) -> MessagingProtocol:
    return request.app.state.protocol


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


async def get_current_address(request: Request) -> str:
    """Dependency for getting the address of the authenticated caller.

    Args:
        request: The FastAPI request object

    Returns:
        The caller address carried by the bearer token

    Raises:
        HTTPException: If authentication fails
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            raise InvalidTokenError("No authorization header found")

        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise InvalidTokenError("Invalid authentication scheme")

        return get_auth_service(request).get_caller_address(parts[1])
    except (InvalidTokenError, TokenExpiredError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
