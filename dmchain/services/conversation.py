import threading
from datetime import datetime

from dmchain.models.conversation import Conversation
from dmchain.models.user import normalize_address


class ConversationIndex:
    """Stable conversation ids for unordered pairs of addresses.

    The index is only written by MessageStore.send(), inside the same
    critical section that records the message, so a conversation never
    points at a message that does not exist and every message has its
    conversation.
    """

    def __init__(self, lock: threading.RLock) -> None:
        self._lock = lock
        self._counter = 0
        self._by_pair: dict[tuple[str, str], int] = {}
        self._conversations: dict[int, Conversation] = {}
        self._by_user: dict[str, list[int]] = {}

    def peek_id(self, a: str, b: str) -> int:
        """Id that touch() would use for the pair, without allocating it."""
        with self._lock:
            existing = self._by_pair.get((a, b))
            return existing if existing is not None else self._counter + 1

    def touch(self, a: str, b: str, message_id: int, when: datetime) -> int:
        """Record ``message_id`` as the latest message between ``a`` and ``b``.

        Creates the conversation on the first message of the pair.

        Returns:
            The conversation id of the pair
        """
        with self._lock:
            conversation_id = self._by_pair.get((a, b))
            if conversation_id is None:
                self._counter += 1
                conversation_id = self._counter
                conversation = Conversation(
                    conversation_id=conversation_id,
                    participant_a=a,
                    participant_b=b,
                    last_message_id=message_id,
                    created_at=when,
                )
                self._by_pair[(a, b)] = conversation_id
                self._by_pair[(b, a)] = conversation_id
                self._by_user.setdefault(a, []).append(conversation_id)
                self._by_user.setdefault(b, []).append(conversation_id)
            else:
                conversation = self._conversations[conversation_id].model_copy(
                    update={"last_message_id": message_id}
                )
            self._conversations[conversation_id] = conversation
            return conversation_id

    def lookup(self, a: str, b: str) -> int | None:
        key = (normalize_address(a), normalize_address(b))
        with self._lock:
            return self._by_pair.get(key)

    def get(self, conversation_id: int) -> Conversation | None:
        with self._lock:
            return self._conversations.get(conversation_id)

    def for_user(self, address: str) -> list[int]:
        with self._lock:
            return list(self._by_user.get(normalize_address(address), []))

    def __len__(self) -> int:
        return self._counter
