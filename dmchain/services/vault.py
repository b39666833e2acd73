import logging
import threading

from dmchain.errors import EmptyVaultError, ForbiddenError
from dmchain.models.event import EventKind
from dmchain.models.user import normalize_address
from dmchain.services.event_log import EventLog

logger = logging.getLogger(__name__)


class AccessControl:
    """Holds the single protocol owner."""

    def __init__(self, owner: str) -> None:
        self.owner = normalize_address(owner)

    def is_owner(self, caller: str) -> bool:
        return normalize_address(caller) == self.owner

    def require_owner(self, caller: str) -> None:
        if not self.is_owner(caller):
            raise ForbiddenError("Only the protocol owner can perform this operation")


class FeeVault:
    """Accumulator for optional per-message fees.

    Withdrawal reads the balance, pays it out to the owner and zeroes the
    vault under one lock, so two concurrent withdrawals cannot both succeed.
    """

    def __init__(
        self, lock: threading.RLock, events: EventLog, access: AccessControl
    ) -> None:
        self._lock = lock
        self._events = events
        self._access = access
        self._balance = 0
        self._total_withdrawn = 0

    def credit(self, amount: int) -> None:
        with self._lock:
            self._balance += amount

    def balance(self) -> int:
        with self._lock:
            return self._balance

    def total_withdrawn(self) -> int:
        """Everything paid out to the owner so far."""
        with self._lock:
            return self._total_withdrawn

    def withdraw(self, caller: str) -> int:
        """Pay the whole balance out to the owner.

        Args:
            caller: Address requesting the withdrawal

        Returns:
            The amount transferred

        Raises:
            ForbiddenError: If the caller is not the owner
            EmptyVaultError: If there is nothing to withdraw
        """
        caller = normalize_address(caller)
        with self._lock:
            self._access.require_owner(caller)
            amount = self._balance
            if amount == 0:
                raise EmptyVaultError("No fees to withdraw")

            self._events.append(
                EventKind.FEES_WITHDRAWN,
                actor=caller,
                subject_ids=(self._access.owner,),
                payload={"amount": amount},
            )
            self._balance = 0
            self._total_withdrawn += amount

        logger.info("withdrew %d to owner %s", amount, self._access.owner)
        return amount
