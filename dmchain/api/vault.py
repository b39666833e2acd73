from typing import Annotated

from fastapi import APIRouter, Depends

from dmchain.dependencies import get_current_address, get_protocol, to_http_exception
from dmchain.errors import ProtocolError
from dmchain.schemas.responses import VaultBalanceResponse, WithdrawResponse
from dmchain.services.protocol import MessagingProtocol

router = APIRouter(prefix="/vault", tags=["vault"])


@router.get("/balance", response_model=VaultBalanceResponse)
async def get_vault_balance(
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> VaultBalanceResponse:
    return VaultBalanceResponse(
        balance=protocol.vault_balance(),
        total_withdrawn=protocol.vault.total_withdrawn(),
        message_fee=protocol.message_fee,
    )


@router.post("/withdraw", response_model=WithdrawResponse)
async def withdraw(
    caller: Annotated[str, Depends(get_current_address)],
    protocol: Annotated[MessagingProtocol, Depends(get_protocol)],
) -> WithdrawResponse:
    """Withdraw every accumulated fee to the protocol owner.

    Args:
        caller: The authenticated address, must be the owner
        protocol: The protocol instance

    Returns:
        The owner and the amount paid out

    Raises:
        HTTPException: If the caller is not the owner or the vault is empty
    """
    try:
        amount = protocol.withdraw(caller)
    except ProtocolError as e:
        raise to_http_exception(e)
    return WithdrawResponse(owner=protocol.owner, amount=amount)
