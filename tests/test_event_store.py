import json
from unittest.mock import MagicMock

import pytest
from neo4j.exceptions import ServiceUnavailable

from dmchain.errors import EventStoreError
from dmchain.models.event import EventKind
from dmchain.services.event_store import GraphEventStore
from dmchain.services.protocol import MessagingProtocol


@pytest.mark.unit
class TestGraphEventStore:
    @pytest.fixture
    def session(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def driver(self, session: MagicMock) -> MagicMock:
        driver = MagicMock()
        driver.session.return_value.__enter__.return_value = session
        return driver

    @pytest.fixture
    def store(self, driver: MagicMock) -> GraphEventStore:
        return GraphEventStore(driver, "neo4j")

    def test_append_runs_write_transaction(
        self,
        store: GraphEventStore,
        driver: MagicMock,
        session: MagicMock,
        registered: MessagingProtocol,
    ):
        # Arrange
        event = registered.event_log.last

        # Act
        store.append(event)

        # Assert
        driver.session.assert_called_once_with(database="neo4j")
        session.execute_write.assert_called_once_with(store._append_event, event)

    def test_append_event_parameters(
        self, store: GraphEventStore, registered: MessagingProtocol
    ):
        # Arrange
        event = registered.event_log.last
        tx = MagicMock()
        tx.run.return_value.single.return_value = {"sequence": event.sequence}

        # Act
        result = store._append_event(tx, event)

        # Assert
        assert result == event.sequence
        params = tx.run.call_args.kwargs
        assert params["sequence"] == event.sequence
        assert params["kind"] == EventKind.PROFILE_UPDATED.value
        assert json.loads(params["payload"]) == event.payload
        assert params["timestamp"] == event.timestamp.isoformat()
        assert params["hash"] == event.hash

    def test_append_event_without_result_fails(
        self, store: GraphEventStore, registered: MessagingProtocol
    ):
        # Arrange
        tx = MagicMock()
        tx.run.return_value.single.return_value = None

        # Act & Assert
        with pytest.raises(EventStoreError):
            store._append_event(tx, registered.event_log.last)

    def test_append_driver_failure(
        self, store: GraphEventStore, session: MagicMock, registered: MessagingProtocol
    ):
        # Arrange
        session.execute_write.side_effect = ServiceUnavailable("down")

        # Act & Assert
        with pytest.raises(EventStoreError, match="Failed to persist"):
            store.append(registered.event_log.last)

    def test_load_round_trip(
        self,
        store: GraphEventStore,
        session: MagicMock,
        registered: MessagingProtocol,
        alice: str,
        bob: str,
        as_node,
    ):
        # Arrange
        registered.send_message(alice, bob, "persist me", fee=0)
        original = registered.events()
        tx = MagicMock()
        tx.run.return_value = [{"event": as_node(e)} for e in original]
        session.execute_read.side_effect = lambda fn: fn(tx)

        # Act
        loaded = store.load()

        # Assert
        assert loaded == original

    def test_load_malformed_event(self, store: GraphEventStore, session: MagicMock):
        # Arrange
        tx = MagicMock()
        tx.run.return_value = [{"event": {"sequence": 1, "kind": "NOT_A_KIND"}}]
        session.execute_read.side_effect = lambda fn: fn(tx)

        # Act & Assert
        with pytest.raises(EventStoreError, match="Malformed"):
            store.load()

    def test_load_driver_failure(self, store: GraphEventStore, session: MagicMock):
        # Arrange
        session.execute_read.side_effect = ServiceUnavailable("down")

        # Act & Assert
        with pytest.raises(EventStoreError, match="Failed to load"):
            store.load()

    def test_ensure_constraints(self, store: GraphEventStore, session: MagicMock):
        # Act
        store.ensure_constraints()

        # Assert
        query = session.run.call_args.args[0]
        assert "CREATE CONSTRAINT" in query
        assert "ProtocolEvent" in query

    def test_store_as_protocol_sink(
        self, store: GraphEventStore, session: MagicMock, owner: str, alice: str
    ):
        # Arrange
        protocol = MessagingProtocol(owner, 0, sink=store)

        # Act
        protocol.create_profile(alice, "alice", "", "")

        # Assert
        session.execute_write.assert_called_once_with(
            store._append_event, protocol.event_log.last
        )
