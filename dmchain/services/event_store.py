import json
import logging
from datetime import datetime

from neo4j import Driver, ManagedTransaction
from neo4j.exceptions import DriverError, Neo4jError

from dmchain.errors import EventStoreError
from dmchain.models.event import Event, EventKind

logger = logging.getLogger(__name__)


class GraphEventStore:
    """Durable copy of the event log in Neo4j.

    Each event is a ``ProtocolEvent`` node linked to its predecessor with a
    ``PRECEDED_BY`` relationship, so the chain can be walked and audited
    directly in the graph.
    """

    def __init__(self, driver: Driver, database: str) -> None:
        self._driver = driver
        self._database = database

    def ensure_constraints(self) -> None:
        """Create the uniqueness constraint on event sequence numbers."""
        with self._driver.session(database=self._database) as session:
            try:
                session.run(
                    """
                    CREATE CONSTRAINT protocol_event_sequence IF NOT EXISTS
                    FOR (e:ProtocolEvent) REQUIRE e.sequence IS UNIQUE
                    """
                )
            except (DriverError, Neo4jError) as e:
                raise EventStoreError(f"Failed to create constraints: {str(e)}") from e

    def append(self, event: Event) -> None:
        """Persist one event in its own write transaction.

        Raises:
            EventStoreError: If the write fails
        """
        with self._driver.session(database=self._database) as session:
            try:
                session.execute_write(self._append_event, event)
            except (DriverError, Neo4jError) as e:
                logger.error("failed to persist event %d: %s", event.sequence, e)
                raise EventStoreError(f"Failed to persist event: {str(e)}") from e

    def _append_event(self, tx: ManagedTransaction, event: Event) -> int:
        # language=cypher
        query = """
        OPTIONAL MATCH (prev:ProtocolEvent {sequence: $sequence - 1})
        CREATE (e:ProtocolEvent {
            sequence: $sequence,
            kind: $kind,
            actor: $actor,
            subject_ids: $subject_ids,
            payload: $payload,
            timestamp: $timestamp,
            prev_hash: $prev_hash,
            hash: $hash
        })
        FOREACH (ignored IN CASE WHEN prev IS NOT NULL THEN [1] ELSE [] END |
            CREATE (e)-[:PRECEDED_BY]->(prev)
        )
        RETURN e.sequence AS sequence
        """
        result = tx.run(
            query,
            sequence=event.sequence,
            kind=event.kind.value,
            actor=event.actor,
            subject_ids=list(event.subject_ids),
            payload=json.dumps(event.payload, sort_keys=True),
            timestamp=event.timestamp.isoformat(),
            prev_hash=event.prev_hash,
            hash=event.hash,
        )
        if record := result.single():
            return record["sequence"]
        raise EventStoreError(f"Event {event.sequence} was not written")

    def load(self) -> list[Event]:
        """Load every persisted event in sequence order.

        Raises:
            EventStoreError: If the read fails or a stored event is malformed
        """
        with self._driver.session(database=self._database) as session:
            try:
                return session.execute_read(self._load_events)
            except (DriverError, Neo4jError) as e:
                raise EventStoreError(f"Failed to load events: {str(e)}") from e

    def _load_events(self, tx: ManagedTransaction) -> list[Event]:
        query = """
        MATCH (e:ProtocolEvent)
        RETURN e AS event
        ORDER BY e.sequence
        """
        result = tx.run(query)
        return [self._to_event(dict(record["event"])) for record in result]

    @staticmethod
    def _to_event(node: dict) -> Event:
        try:
            return Event(
                sequence=node["sequence"],
                kind=EventKind(node["kind"]),
                actor=node["actor"],
                subject_ids=tuple(node.get("subject_ids") or ()),
                payload=json.loads(node["payload"]),
                timestamp=datetime.fromisoformat(node["timestamp"]),
                prev_hash=node.get("prev_hash", ""),
                hash=node["hash"],
            )
        except (KeyError, ValueError) as e:
            raise EventStoreError(f"Malformed stored event: {str(e)}") from e
