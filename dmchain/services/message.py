import logging
import threading

from dmchain.errors import (
    AlreadyDeletedError,
    AlreadyReportedError,
    BlockedError,
    ForbiddenError,
    InsufficientFeeError,
    NotFoundError,
    ValidationError,
)
from dmchain.models.event import EventKind
from dmchain.models.message import MAX_CONTENT_LENGTH, Message
from dmchain.models.report import Report
from dmchain.models.user import ZERO_ADDRESS, normalize_address
from dmchain.services.block import BlockGraph
from dmchain.services.conversation import ConversationIndex
from dmchain.services.event_log import EventLog
from dmchain.services.profile import IdentityRegistry
from dmchain.services.report import ReportLedger
from dmchain.services.vault import FeeVault

logger = logging.getLogger(__name__)


def _page(ids: list[int], offset: int, limit: int) -> list[int]:
    offset = max(0, offset)
    limit = max(0, limit)
    return ids[offset : offset + limit]


class MessageStore:
    """Owner of message records and their lifecycle.

    Messages get sequential ids starting at 1. A message is created once by
    send() and afterwards can only be flagged as deleted or reported; it is
    never removed, so get() keeps returning it.

    Every write validates first, appends its event second and applies its
    changes last. Validation and the event log are the only steps that can
    fail, so a failed call leaves no trace.
    """

    def __init__(
        self,
        lock: threading.RLock,
        events: EventLog,
        identity: IdentityRegistry,
        blocks: BlockGraph,
        conversations: ConversationIndex,
        reports: ReportLedger,
        vault: FeeVault,
        message_fee: int,
    ) -> None:
        self._lock = lock
        self._events = events
        self._identity = identity
        self._blocks = blocks
        self._conversations = conversations
        self._reports = reports
        self._vault = vault
        self.message_fee = message_fee
        self._messages: list[Message] = []
        self._by_user: dict[str, list[int]] = {}

    def send(
        self,
        sender: str,
        recipient: str,
        content: str,
        message_type: str = "text",
        fee_paid: int = 0,
    ) -> int:
        """Send a message.

        Checks run in a fixed order and the first failing one is raised.

        Args:
            sender: Address sending the message
            recipient: Address receiving the message
            content: Opaque message content, 1 to 1000 characters
            message_type: Client-defined message kind
            fee_paid: Optional fee; when non-zero it must cover the message fee

        Returns:
            The id of the new message

        Raises:
            NotActiveError: If the sender or the recipient has no active profile
            ValidationError: If content, recipient or fee is invalid
            BlockedError: If either party blocks the other
        """
        sender = normalize_address(sender)
        with self._lock:
            self._identity.require_active(sender)
            if not content or len(content) > MAX_CONTENT_LENGTH:
                raise ValidationError(
                    f"Content must be between 1 and {MAX_CONTENT_LENGTH} characters"
                )
            recipient = normalize_address(recipient)
            if recipient == ZERO_ADDRESS:
                raise ValidationError("Cannot send a message to the zero address")
            if recipient == sender:
                raise ValidationError("Cannot send a message to yourself")
            self._identity.require_active(recipient)
            if self._blocks.is_blocked_either_way(sender, recipient):
                raise BlockedError("A block exists between sender and recipient")
            if fee_paid < 0:
                raise ValidationError("Fee cannot be negative")
            if 0 < fee_paid < self.message_fee:
                raise InsufficientFeeError(
                    f"Fee must be at least {self.message_fee} when paid"
                )

            message_id = len(self._messages) + 1
            conversation_id = self._conversations.peek_id(sender, recipient)
            when = self._events.next_timestamp()
            message = Message(
                message_id=message_id,
                sender=sender,
                recipient=recipient,
                content=content,
                timestamp=when,
                message_type=message_type,
            )
            self._events.append(
                EventKind.MESSAGE_SENT,
                actor=sender,
                subject_ids=(str(message_id), sender, recipient),
                payload={
                    "message_id": message_id,
                    "conversation_id": conversation_id,
                    "recipient": recipient,
                    "content": content,
                    "message_type": message_type,
                    "fee_paid": fee_paid,
                },
                timestamp=when,
            )

            self._messages.append(message)
            self._by_user.setdefault(sender, []).append(message_id)
            self._by_user.setdefault(recipient, []).append(message_id)
            self._conversations.touch(sender, recipient, message_id, when)
            self._identity.touch(sender, when)
            if fee_paid:
                self._vault.credit(fee_paid)

        logger.info(
            "message %d sent from %s to %s (conversation %d)",
            message_id,
            sender,
            recipient,
            conversation_id,
        )
        return message_id

    def delete(self, message_id: int, requester: str) -> Message:
        """Mark a message as deleted.

        Raises:
            NotFoundError: If the message id is unknown
            ForbiddenError: If the requester is not the sender
            AlreadyDeletedError: If the message is already deleted
        """
        requester = normalize_address(requester)
        with self._lock:
            message = self._get(message_id)
            if message.sender != requester:
                raise ForbiddenError("Only the sender can delete a message")
            if message.is_deleted:
                raise AlreadyDeletedError(f"Message {message_id} is already deleted")

            self._events.append(
                EventKind.MESSAGE_DELETED,
                actor=requester,
                subject_ids=(str(message_id),),
                payload={"message_id": message_id},
            )
            message = message.model_copy(update={"is_deleted": True})
            self._messages[message_id - 1] = message

        logger.info("message %d deleted by %s", message_id, requester)
        return message

    def report(self, message_id: int, reporter: str, reason: str) -> Message:
        """Report a message for moderation.

        A message can be reported once. Only its sender or recipient may report it.

        Raises:
            NotFoundError: If the message id is unknown
            ForbiddenError: If the reporter is not a participant
            AlreadyReportedError: If the message is already reported
        """
        reporter = normalize_address(reporter)
        with self._lock:
            message = self._get(message_id)
            if reporter not in (message.sender, message.recipient):
                raise ForbiddenError("Only participants can report a message")
            if message.is_reported:
                raise AlreadyReportedError(f"Message {message_id} is already reported")

            when = self._events.next_timestamp()
            report = Report(
                message_id=message_id,
                reporter=reporter,
                reason=reason,
                created_at=when,
            )
            self._events.append(
                EventKind.MESSAGE_REPORTED,
                actor=reporter,
                subject_ids=(str(message_id),),
                payload={"message_id": message_id, "reason": reason},
                timestamp=when,
            )
            message = message.model_copy(update={"is_reported": True})
            self._messages[message_id - 1] = message
            self._reports.record(report)

        logger.info("message %d reported by %s", message_id, reporter)
        return message

    def get(self, message_id: int) -> Message:
        """Return a message regardless of its deleted or reported state.

        Raises:
            NotFoundError: If the message id is unknown
        """
        with self._lock:
            return self._get(message_id)

    def _get(self, message_id: int) -> Message:
        # bool is an int subclass, True would alias message 1
        valid = isinstance(message_id, int) and not isinstance(message_id, bool)
        if not valid or not 1 <= message_id <= len(self._messages):
            raise NotFoundError(f"Message {message_id} not found")
        return self._messages[message_id - 1]

    def list_for_user(self, address: str, offset: int = 0, limit: int = 50) -> list[int]:
        """Page through the ids of every message sent or received by an address.

        Out of range offsets and limits are clamped, never rejected.
        """
        address = normalize_address(address)
        with self._lock:
            return _page(self._by_user.get(address, []), offset, limit)

    def conversation_messages(
        self, a: str, b: str, offset: int = 0, limit: int = 50
    ) -> list[int]:
        """Page through the non-deleted messages exchanged between two addresses."""
        a = normalize_address(a)
        b = normalize_address(b)
        with self._lock:
            ids = [
                message_id
                for message_id in self._by_user.get(a, [])
                if self._is_between(self._messages[message_id - 1], a, b)
            ]
            return _page(ids, offset, limit)

    @staticmethod
    def _is_between(message: Message, a: str, b: str) -> bool:
        if message.is_deleted:
            return False
        return {message.sender, message.recipient} == {a, b}

    def total_count(self) -> int:
        with self._lock:
            return len(self._messages)

    def user_count(self, address: str) -> int:
        address = normalize_address(address)
        with self._lock:
            return len(self._by_user.get(address, []))
