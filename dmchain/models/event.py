from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventKind(str, Enum):
    """Enumeration of the state transitions recorded in the event log."""

    PROFILE_UPDATED = "PROFILE_UPDATED"
    MESSAGE_SENT = "MESSAGE_SENT"
    MESSAGE_DELETED = "MESSAGE_DELETED"
    MESSAGE_REPORTED = "MESSAGE_REPORTED"
    USER_BLOCKED = "USER_BLOCKED"
    USER_UNBLOCKED = "USER_UNBLOCKED"
    USER_FOLLOWED = "USER_FOLLOWED"
    USER_UNFOLLOWED = "USER_UNFOLLOWED"
    FEES_WITHDRAWN = "FEES_WITHDRAWN"


class Event(BaseModel):
    """Model representing one entry of the append-only event log.

    Attributes:
        sequence: Position in the log, starting at 1
        kind: Which transition happened
        actor: Address that triggered the transition
        subject_ids: Identifiers touched by the transition (addresses, message ids)
        payload: Transition details, JSON-serializable
        timestamp: When the transition was applied; never decreases along the log
        prev_hash: Hash of the previous entry, empty for the first entry
        hash: Chain hash of this entry
    """

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(ge=1)
    kind: EventKind
    actor: str
    subject_ids: tuple[str, ...] = ()
    payload: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    prev_hash: str = ""
    hash: str = ""

    def hashable(self) -> dict[str, Any]:
        """Return the fields covered by the chain hash."""
        return {
            "sequence": self.sequence,
            "kind": self.kind.value,
            "actor": self.actor,
            "subject_ids": list(self.subject_ids),
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }
