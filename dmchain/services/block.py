import logging
import threading

from dmchain.errors import InvalidTargetError, NotBlockedError
from dmchain.models.block import Block
from dmchain.models.event import EventKind
from dmchain.models.user import ZERO_ADDRESS, normalize_address
from dmchain.services.event_log import EventLog
from dmchain.services.profile import IdentityRegistry

logger = logging.getLogger(__name__)


class BlockGraph:
    """Directed block relation between addresses.

    A block in either direction is enough to stop delivery between a pair,
    see is_blocked_either_way().
    """

    def __init__(
        self, lock: threading.RLock, events: EventLog, identity: IdentityRegistry
    ) -> None:
        self._lock = lock
        self._events = events
        self._identity = identity
        self._blocks: dict[tuple[str, str], Block] = {}

    def block(self, blocker: str, target: str) -> Block:
        """Block a user.

        Args:
            blocker: Address doing the blocking
            target: Address to block

        Returns:
            The created block record

        Raises:
            NotActiveError: If the blocker has no active profile
            InvalidTargetError: If target is the zero address, the blocker, or already blocked
        """
        blocker = normalize_address(blocker)
        target = normalize_address(target)
        with self._lock:
            self._identity.require_active(blocker)
            if target == ZERO_ADDRESS:
                raise InvalidTargetError("Cannot block the zero address")
            if target == blocker:
                raise InvalidTargetError("Users cannot block themselves")
            if (blocker, target) in self._blocks:
                raise InvalidTargetError("User is already blocked")

            when = self._events.next_timestamp()
            record = Block(blocker=blocker, blocked=target, created_at=when)
            self._events.append(
                EventKind.USER_BLOCKED,
                actor=blocker,
                subject_ids=(blocker, target),
                payload={"target": target},
                timestamp=when,
            )
            self._blocks[(blocker, target)] = record

        logger.info("%s blocked %s", blocker, target)
        return record

    def unblock(self, blocker: str, target: str) -> None:
        """Remove a block.

        Raises:
            NotActiveError: If the blocker has no active profile
            NotBlockedError: If the blocker does not block the target
        """
        blocker = normalize_address(blocker)
        target = normalize_address(target)
        with self._lock:
            self._identity.require_active(blocker)
            if (blocker, target) not in self._blocks:
                raise NotBlockedError("User is not blocked")

            self._events.append(
                EventKind.USER_UNBLOCKED,
                actor=blocker,
                subject_ids=(blocker, target),
                payload={"target": target},
            )
            del self._blocks[(blocker, target)]

        logger.info("%s unblocked %s", blocker, target)

    def is_blocked(self, blocker: str, target: str) -> bool:
        return (normalize_address(blocker), normalize_address(target)) in self._blocks

    def is_blocked_either_way(self, a: str, b: str) -> bool:
        a = normalize_address(a)
        b = normalize_address(b)
        with self._lock:
            return (a, b) in self._blocks or (b, a) in self._blocks

    def blocked_by(self, blocker: str) -> list[str]:
        """Addresses blocked by ``blocker``, oldest block first."""
        blocker = normalize_address(blocker)
        with self._lock:
            return [
                record.blocked
                for (origin, _), record in self._blocks.items()
                if origin == blocker
            ]
