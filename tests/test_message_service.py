import pytest

from dmchain.errors import (
    AlreadyDeletedError,
    AlreadyReportedError,
    BlockedError,
    ForbiddenError,
    InsufficientFeeError,
    NotActiveError,
    NotFoundError,
    ValidationError,
)
from dmchain.models.event import EventKind
from dmchain.models.user import ZERO_ADDRESS
from dmchain.services.protocol import MessagingProtocol


@pytest.mark.unit
class TestMessageSend:
    def test_send_message_success(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Act
        message_id = registered.send_message(alice, bob, "hello", "text")

        # Assert
        assert message_id == 1
        message = registered.get_message(1)
        assert message.sender == alice
        assert message.recipient == bob
        assert message.content == "hello"
        assert message.message_type == "text"
        assert message.is_deleted is False
        assert message.is_reported is False

    def test_ids_strictly_increase(
        self, registered: MessagingProtocol, alice: str, bob: str, carol: str
    ):
        # Act
        ids = [
            registered.send_message(alice, bob, "1"),
            registered.send_message(bob, alice, "2"),
            registered.send_message(carol, alice, "3"),
        ]

        # Assert
        assert ids == [1, 2, 3]
        assert registered.get_total_message_count() == 3

    def test_send_side_effects(
        self, registered: MessagingProtocol, alice: str, bob: str, message_fee: int
    ):
        # Arrange
        before = registered.get_user_profile(alice).last_seen

        # Act
        message_id = registered.send_message(alice, bob, "hello", fee=message_fee)

        # Assert
        message = registered.get_message(message_id)
        assert registered.get_user_messages(alice, 0, 10) == [message_id]
        assert registered.get_user_messages(bob, 0, 10) == [message_id]
        conversation_id = registered.conversations.lookup(alice, bob)
        assert registered.conversations.get(conversation_id).last_message_id == 1
        assert registered.get_user_profile(alice).last_seen == message.timestamp
        assert registered.get_user_profile(alice).last_seen > before
        assert registered.vault_balance() == message_fee
        event = registered.event_log.last
        assert event.kind == EventKind.MESSAGE_SENT
        assert event.timestamp == message.timestamp
        assert event.payload["conversation_id"] == conversation_id

    def test_content_limits(self, registered: MessagingProtocol, alice: str, bob: str):
        # Act & Assert
        with pytest.raises(ValidationError, match="Content"):
            registered.send_message(alice, bob, "")
        with pytest.raises(ValidationError, match="Content"):
            registered.send_message(alice, bob, "x" * 1001)

        assert registered.send_message(alice, bob, "x" * 1000) == 1

    def test_invalid_recipients(self, registered: MessagingProtocol, alice: str):
        # Act & Assert
        with pytest.raises(ValidationError, match="yourself"):
            registered.send_message(alice, alice, "hi")
        with pytest.raises(ValidationError, match="zero"):
            registered.send_message(alice, ZERO_ADDRESS, "hi")
        with pytest.raises(ValidationError):
            registered.send_message(alice, "0x123", "hi")

    def test_inactive_sender_and_recipient(
        self, registered: MessagingProtocol, alice: str, outsider: str
    ):
        # Act & Assert
        with pytest.raises(NotActiveError):
            registered.send_message(outsider, alice, "hi")
        with pytest.raises(NotActiveError):
            registered.send_message(alice, outsider, "hi")

    def test_check_order(
        self, registered: MessagingProtocol, alice: str, bob: str, outsider: str
    ):
        # Inactive sender is reported before bad content
        with pytest.raises(NotActiveError):
            registered.send_message(outsider, outsider, "")

        # Bad content is reported before a self recipient
        with pytest.raises(ValidationError, match="Content"):
            registered.send_message(alice, alice, "")

        # Self recipient is reported before recipient activity
        with pytest.raises(ValidationError, match="yourself"):
            registered.send_message(alice, alice, "hi", fee=1)

        # Inactive recipient is reported before the fee
        with pytest.raises(NotActiveError):
            registered.send_message(alice, outsider, "hi", fee=1)

        # A block is reported before the fee
        registered.block_user(bob, alice)
        with pytest.raises(BlockedError):
            registered.send_message(alice, bob, "hi", fee=1)

    def test_block_either_direction_forbids(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        registered.block_user(alice, bob)

        # Act & Assert
        with pytest.raises(ForbiddenError):
            registered.send_message(alice, bob, "hi")
        with pytest.raises(ForbiddenError):
            registered.send_message(bob, alice, "hi")

    def test_fee_rules(
        self, registered: MessagingProtocol, alice: str, bob: str, message_fee: int
    ):
        # Act & Assert
        with pytest.raises(InsufficientFeeError):
            registered.send_message(alice, bob, "hi", fee=message_fee - 1)
        with pytest.raises(ValidationError, match="negative"):
            registered.send_message(alice, bob, "hi", fee=-1)

        registered.send_message(alice, bob, "free")
        registered.send_message(alice, bob, "exact", fee=message_fee)
        registered.send_message(alice, bob, "generous", fee=message_fee * 3)
        assert registered.vault_balance() == message_fee * 4

    def test_failed_send_changes_nothing(
        self, registered: MessagingProtocol, alice: str, bob: str, message_fee: int
    ):
        # Arrange
        event_count = len(registered.event_log)
        registered.block_user(bob, alice)

        # Act
        with pytest.raises(BlockedError):
            registered.send_message(alice, bob, "hi", fee=message_fee)

        # Assert
        assert registered.get_total_message_count() == 0
        assert registered.get_user_message_count(alice) == 0
        assert registered.conversations.lookup(alice, bob) is None
        assert registered.vault_balance() == 0
        assert len(registered.event_log) == event_count + 1


@pytest.mark.unit
class TestMessageLifecycle:
    def test_delete_message_success(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "oops")

        # Act
        registered.delete_message(alice, message_id)

        # Assert
        message = registered.get_message(message_id)
        assert message.is_deleted is True
        assert message.content == "oops"
        assert registered.event_log.last.kind == EventKind.MESSAGE_DELETED

    def test_delete_twice_fails(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "oops")
        registered.delete_message(alice, message_id)

        # Act & Assert
        with pytest.raises(AlreadyDeletedError):
            registered.delete_message(alice, message_id)
        assert registered.get_message(message_id).is_deleted is True

    def test_only_sender_can_delete(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "mine")

        # Act & Assert
        with pytest.raises(ForbiddenError):
            registered.delete_message(bob, message_id)
        assert registered.get_message(message_id).is_deleted is False

    @pytest.mark.parametrize("message_id", [0, -1, 2, 99, True, False])
    def test_unknown_message_ids(
        self, registered: MessagingProtocol, alice: str, bob: str, message_id: int
    ):
        # Arrange
        registered.send_message(alice, bob, "only one")

        # Act & Assert
        with pytest.raises(NotFoundError):
            registered.get_message(message_id)
        with pytest.raises(NotFoundError):
            registered.delete_message(alice, message_id)
        with pytest.raises(NotFoundError):
            registered.report_message(alice, message_id, "spam")
        with pytest.raises(NotFoundError):
            registered.get_message_reports(message_id)

    def test_report_message_success(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "rude")

        # Act
        registered.report_message(bob, message_id, "harassment")

        # Assert
        assert registered.get_message(message_id).is_reported is True
        assert [r.reporter for r in registered.get_message_reports(message_id)] == [bob]
        assert registered.get_message_reports(message_id)[0].reason == "harassment"
        event = registered.event_log.last
        assert event.kind == EventKind.MESSAGE_REPORTED
        assert event.payload["reason"] == "harassment"

    def test_report_is_one_shot(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "rude")
        registered.report_message(bob, message_id, "harassment")

        # Act & Assert
        with pytest.raises(AlreadyReportedError):
            registered.report_message(bob, message_id, "again")
        with pytest.raises(AlreadyReportedError):
            registered.report_message(alice, message_id, "me too")
        assert [r.reporter for r in registered.get_message_reports(message_id)] == [bob]

    def test_only_participants_can_report(
        self, registered: MessagingProtocol, alice: str, bob: str, carol: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "private")

        # Act & Assert
        with pytest.raises(ForbiddenError):
            registered.report_message(carol, message_id, "nosy")
        assert registered.get_message_reports(message_id) == []

    def test_deleted_message_can_still_be_reported(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "rude")
        registered.delete_message(alice, message_id)

        # Act
        message = registered.report_message(bob, message_id, "evidence")

        # Assert
        assert message.is_deleted is True
        assert message.is_reported is True


@pytest.mark.unit
class TestMessageListing:
    def test_list_for_user_pagination(
        self, registered: MessagingProtocol, alice: str, bob: str, carol: str
    ):
        # Arrange
        for i in range(5):
            registered.send_message(alice, bob, f"msg {i}")
        registered.send_message(carol, alice, "hey")

        # Act & Assert
        assert registered.get_user_messages(alice, 0, 10) == [1, 2, 3, 4, 5, 6]
        assert registered.get_user_messages(alice, 2, 2) == [3, 4]
        assert registered.get_user_messages(alice, 4, 10) == [5, 6]
        assert registered.get_user_messages(bob, 0, 10) == [1, 2, 3, 4, 5]
        assert registered.get_user_message_count(alice) == 6
        assert registered.get_user_message_count(carol) == 1

    def test_list_for_user_clamps(
        self, registered: MessagingProtocol, alice: str, bob: str, outsider: str
    ):
        # Arrange
        registered.send_message(alice, bob, "one")
        registered.send_message(alice, bob, "two")

        # Act & Assert
        assert registered.get_user_messages(alice, 2, 10) == []
        assert registered.get_user_messages(alice, 50, 10) == []
        assert registered.get_user_messages(alice, 0, 0) == []
        assert registered.get_user_messages(alice, -3, 1) == [1]
        assert registered.get_user_messages(outsider, 0, 10) == []
        assert len(registered.get_user_messages(alice, 0, 1)) == 1

    def test_deleted_messages_stay_in_user_list(
        self, registered: MessagingProtocol, alice: str, bob: str
    ):
        # Arrange
        message_id = registered.send_message(alice, bob, "gone")
        registered.delete_message(alice, message_id)

        # Assert
        assert registered.get_user_messages(alice, 0, 10) == [message_id]
        assert registered.get_user_message_count(alice) == 1

    def test_get_conversation(
        self, registered: MessagingProtocol, alice: str, bob: str, carol: str
    ):
        # Arrange
        registered.send_message(alice, bob, "1")
        registered.send_message(carol, alice, "2")
        registered.send_message(bob, alice, "3")
        registered.send_message(alice, bob, "4")
        registered.delete_message(alice, 4)

        # Act & Assert
        assert registered.get_conversation(alice, bob, 0, 10) == [1, 3]
        assert registered.get_conversation(bob, alice, 0, 10) == [1, 3]
        assert registered.get_conversation(alice, bob, 1, 10) == [3]
        assert registered.get_conversation(alice, carol, 0, 10) == [2]
        assert registered.get_conversation(bob, carol, 0, 10) == []
