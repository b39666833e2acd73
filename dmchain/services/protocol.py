import threading

from dmchain.config import Settings
from dmchain.models.event import Event
from dmchain.models.message import Message
from dmchain.models.report import Report
from dmchain.models.user import Profile
from dmchain.services.block import BlockGraph
from dmchain.services.conversation import ConversationIndex
from dmchain.services.event_log import Clock, EventLog, EventSink
from dmchain.services.follow import FollowGraph
from dmchain.services.message import MessageStore
from dmchain.services.profile import IdentityRegistry
from dmchain.services.report import ReportLedger
from dmchain.services.vault import AccessControl, FeeVault


class MessagingProtocol:
    """Public operation surface of the messaging protocol.

    All components share one re-entrant lock, which makes the whole state
    (counters, relations, vault and event log) a single consistency domain:
    writes are serialized and reads never observe half-applied changes.

    Write operations take the calling address first.

    Attributes:
        identity: Profile registry
        blocks: Block relation
        follows: Follow relation
        conversations: Conversation index
        reports: Moderation reports
        vault: Fee vault
        messages: Message store
        event_log: Append-only audit log
    """

    def __init__(
        self,
        owner: str,
        message_fee: int,
        clock: Clock | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self.access = AccessControl(owner)
        self.event_log = EventLog(self._lock, clock=clock, sink=sink)
        self.identity = IdentityRegistry(self._lock, self.event_log)
        self.blocks = BlockGraph(self._lock, self.event_log, self.identity)
        self.follows = FollowGraph(self._lock, self.event_log, self.identity)
        self.conversations = ConversationIndex(self._lock)
        self.reports = ReportLedger(self._lock)
        self.vault = FeeVault(self._lock, self.event_log, self.access)
        self.messages = MessageStore(
            self._lock,
            self.event_log,
            self.identity,
            self.blocks,
            self.conversations,
            self.reports,
            self.vault,
            message_fee,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, sink: EventSink | None = None
    ) -> "MessagingProtocol":
        return cls(settings.owner_address, settings.message_fee, sink=sink)

    @property
    def lock(self) -> threading.RLock:
        """Lock shared by every component; hold it to take several reads at once."""
        return self._lock

    @property
    def owner(self) -> str:
        return self.access.owner

    @property
    def message_fee(self) -> int:
        return self.messages.message_fee

    # Writes

    def create_profile(
        self, caller: str, username: str, bio: str = "", avatar: str = ""
    ) -> Profile:
        return self.identity.upsert_profile(caller, username, bio, avatar)

    def send_message(
        self,
        caller: str,
        recipient: str,
        content: str,
        message_type: str = "text",
        fee: int = 0,
    ) -> int:
        return self.messages.send(caller, recipient, content, message_type, fee)

    def delete_message(self, caller: str, message_id: int) -> Message:
        return self.messages.delete(message_id, caller)

    def block_user(self, caller: str, address: str) -> None:
        self.blocks.block(caller, address)

    def unblock_user(self, caller: str, address: str) -> None:
        self.blocks.unblock(caller, address)

    def follow_user(self, caller: str, address: str) -> None:
        self.follows.follow(caller, address)

    def unfollow_user(self, caller: str, address: str) -> None:
        self.follows.unfollow(caller, address)

    def report_message(self, caller: str, message_id: int, reason: str) -> Message:
        return self.messages.report(message_id, caller, reason)

    def withdraw(self, caller: str) -> int:
        return self.vault.withdraw(caller)

    # Reads

    def get_user_messages(self, address: str, offset: int, limit: int) -> list[int]:
        return self.messages.list_for_user(address, offset, limit)

    def get_conversation(self, a: str, b: str, offset: int, limit: int) -> list[int]:
        return self.messages.conversation_messages(a, b, offset, limit)

    def get_message(self, message_id: int) -> Message:
        return self.messages.get(message_id)

    def get_user_profile(self, address: str) -> Profile:
        return self.identity.get(address)

    def is_user_blocked(self, a: str, b: str) -> bool:
        return self.blocks.is_blocked(a, b)

    def is_user_following(self, a: str, b: str) -> bool:
        return self.follows.is_following(a, b)

    def get_blocked_users(self, address: str) -> list[str]:
        return self.blocks.blocked_by(address)

    def get_followers(self, address: str) -> list[str]:
        return self.follows.followers(address)

    def get_following(self, address: str) -> list[str]:
        return self.follows.following(address)

    def get_user_conversations(self, address: str) -> list[int]:
        return self.conversations.for_user(address)

    def get_message_reports(self, message_id: int) -> list[Report]:
        with self._lock:
            self.messages.get(message_id)
            return self.reports.reports_for(message_id)

    def get_total_message_count(self) -> int:
        return self.messages.total_count()

    def get_user_message_count(self, address: str) -> int:
        return self.messages.user_count(address)

    def vault_balance(self) -> int:
        return self.vault.balance()

    def events(self, since: int = 0, limit: int | None = None) -> list[Event]:
        return self.event_log.events(since, limit)

    def verify_event_log(self) -> None:
        self.event_log.verify()
