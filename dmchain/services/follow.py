import logging
import threading

from dmchain.errors import InvalidTargetError, NotActiveError, NotFollowingError
from dmchain.models.event import EventKind
from dmchain.models.follow import Follow
from dmchain.models.user import ZERO_ADDRESS, normalize_address
from dmchain.services.event_log import EventLog
from dmchain.services.profile import IdentityRegistry

logger = logging.getLogger(__name__)


class FollowGraph:
    """Directed follow relation. Purely social metadata, never gates delivery."""

    def __init__(
        self, lock: threading.RLock, events: EventLog, identity: IdentityRegistry
    ) -> None:
        self._lock = lock
        self._events = events
        self._identity = identity
        self._follows: dict[tuple[str, str], Follow] = {}

    def follow(self, follower: str, target: str) -> Follow:
        """Follow a user.

        Args:
            follower: Address doing the following
            target: Address to follow

        Returns:
            The created follow record

        Raises:
            NotActiveError: If the follower or the target has no active profile
            InvalidTargetError: If target is the zero address, the follower, or already followed
        """
        follower = normalize_address(follower)
        target = normalize_address(target)
        with self._lock:
            self._identity.require_active(follower)
            if target == ZERO_ADDRESS:
                raise InvalidTargetError("Cannot follow the zero address")
            if target == follower:
                raise InvalidTargetError("Users cannot follow themselves")
            if not self._identity.is_active(target):
                raise NotActiveError(f"Address {target} does not have an active profile")
            if (follower, target) in self._follows:
                raise InvalidTargetError("User is already followed")

            when = self._events.next_timestamp()
            record = Follow(follower=follower, following=target, created_at=when)
            self._events.append(
                EventKind.USER_FOLLOWED,
                actor=follower,
                subject_ids=(follower, target),
                payload={"target": target},
                timestamp=when,
            )
            self._follows[(follower, target)] = record

        logger.info("%s followed %s", follower, target)
        return record

    def unfollow(self, follower: str, target: str) -> None:
        """Stop following a user.

        Raises:
            NotActiveError: If the follower has no active profile
            NotFollowingError: If the follower does not follow the target
        """
        follower = normalize_address(follower)
        target = normalize_address(target)
        with self._lock:
            self._identity.require_active(follower)
            if (follower, target) not in self._follows:
                raise NotFollowingError("User is not followed")

            self._events.append(
                EventKind.USER_UNFOLLOWED,
                actor=follower,
                subject_ids=(follower, target),
                payload={"target": target},
            )
            del self._follows[(follower, target)]

        logger.info("%s unfollowed %s", follower, target)

    def is_following(self, follower: str, target: str) -> bool:
        return (
            normalize_address(follower),
            normalize_address(target),
        ) in self._follows

    def followers(self, address: str) -> list[str]:
        address = normalize_address(address)
        with self._lock:
            return [f.follower for f in self._follows.values() if f.following == address]

    def following(self, address: str) -> list[str]:
        address = normalize_address(address)
        with self._lock:
            return [f.following for f in self._follows.values() if f.follower == address]
