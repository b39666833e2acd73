import logging
import threading
from datetime import datetime

from dmchain.errors import NotActiveError, ValidationError
from dmchain.models.event import EventKind
from dmchain.models.user import (
    MAX_BIO_LENGTH,
    MAX_USERNAME_LENGTH,
    ZERO_ADDRESS,
    Profile,
    normalize_address,
)
from dmchain.services.event_log import EventLog

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """Registry of profiles and their activation state.

    Every other component asks the registry whether an address is active
    before letting it act. Profiles are created on the first upsert and are
    never deactivated.
    """

    def __init__(self, lock: threading.RLock, events: EventLog) -> None:
        self._lock = lock
        self._events = events
        self._profiles: dict[str, Profile] = {}

    def upsert_profile(
        self, address: str, username: str, bio: str = "", avatar: str = ""
    ) -> Profile:
        """Create a profile or update an existing one.

        Args:
            address: Address owning the profile
            username: Display name, 1 to 50 characters
            bio: Biography, up to 200 characters
            avatar: Opaque avatar reference

        Returns:
            The stored profile, always active

        Raises:
            ValidationError: If the address, username or bio is invalid
        """
        address = normalize_address(address)
        if address == ZERO_ADDRESS:
            raise ValidationError("The zero address cannot own a profile")
        if not username:
            raise ValidationError("Username cannot be empty")
        if len(username) > MAX_USERNAME_LENGTH:
            raise ValidationError(
                f"Username cannot exceed {MAX_USERNAME_LENGTH} characters"
            )
        if len(bio) > MAX_BIO_LENGTH:
            raise ValidationError(f"Bio cannot exceed {MAX_BIO_LENGTH} characters")

        with self._lock:
            existing = self._profiles.get(address)
            when = self._events.next_timestamp()
            profile = Profile(
                address=address,
                username=username,
                bio=bio,
                avatar=avatar,
                is_active=True,
                joined_at=existing.joined_at if existing else when,
                last_seen=when,
            )
            self._events.append(
                EventKind.PROFILE_UPDATED,
                actor=address,
                subject_ids=(address,),
                payload={"username": username, "bio": bio, "avatar": avatar},
                timestamp=when,
            )
            self._profiles[address] = profile

        if existing is None:
            logger.info("profile created for %s", address)
        return profile

    def is_active(self, address: str) -> bool:
        profile = self._profiles.get(normalize_address(address))
        return profile is not None and profile.is_active

    def require_active(self, address: str) -> None:
        """Raise NotActiveError unless the address has an active profile."""
        if not self.is_active(address):
            raise NotActiveError(f"Address {address} does not have an active profile")

    def get(self, address: str) -> Profile:
        """Return the profile, or an empty inactive one for unknown addresses."""
        address = normalize_address(address)
        return self._profiles.get(address) or Profile(address=address)

    def touch(self, address: str, when: datetime) -> None:
        # Called from inside another component's critical section.
        with self._lock:
            profile = self._profiles[address]
            self._profiles[address] = profile.model_copy(update={"last_seen": when})

    def __len__(self) -> int:
        return len(self._profiles)
