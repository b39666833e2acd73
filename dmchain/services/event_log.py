import logging
import threading
from datetime import UTC, datetime
from typing import Any, Callable, Iterable, Protocol

from dmchain.errors import EventLogIntegrityError
from dmchain.models.event import Event, EventKind
from dmchain.utils.chain import compute_chain_hash

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class EventSink(Protocol):
    """Durable destination that receives every event before it is visible."""

    def append(self, event: Event) -> None: ...


class EventLog:
    """Append-only, hash-chained record of every state transition.

    Entries are numbered from 1, their timestamps never go backwards, and
    each entry hash covers its content plus the previous hash so the whole
    log can be verified by anyone holding a copy.

    When a sink is attached, an event is handed to the sink first and only
    becomes part of the log if the sink accepts it. A sink failure therefore
    propagates to the operation that produced the event, which has not yet
    applied any of its changes.
    """

    def __init__(
        self,
        lock: threading.RLock,
        clock: Clock | None = None,
        sink: EventSink | None = None,
    ) -> None:
        self._lock = lock
        self._clock = clock or utc_now
        self._sink = sink
        self._entries: list[Event] = []

    def attach_sink(self, sink: EventSink | None) -> None:
        with self._lock:
            self._sink = sink

    def next_timestamp(self) -> datetime:
        """Timestamp the next appended event will carry."""
        with self._lock:
            now = self._clock()
            if self._entries and now < self._entries[-1].timestamp:
                return self._entries[-1].timestamp
            return now

    def append(
        self,
        kind: EventKind,
        actor: str,
        subject_ids: tuple[str, ...] = (),
        payload: dict[str, Any] | None = None,
        timestamp: datetime | None = None,
    ) -> Event:
        """Append a new event to the log.

        Args:
            kind: Transition being recorded
            actor: Address that triggered it
            subject_ids: Identifiers touched by the transition
            payload: JSON-serializable details
            timestamp: Timestamp obtained from next_timestamp() under the same lock

        Returns:
            The appended event

        Raises:
            EventStoreError: If the attached sink rejects the event
        """
        with self._lock:
            if timestamp is None:
                when = self.next_timestamp()
            elif self._entries and timestamp < self._entries[-1].timestamp:
                when = self._entries[-1].timestamp
            else:
                when = timestamp
            prev_hash = self.head_hash
            event = Event(
                sequence=len(self._entries) + 1,
                kind=kind,
                actor=actor,
                subject_ids=tuple(subject_ids),
                payload=payload or {},
                timestamp=when,
                prev_hash=prev_hash,
            )
            event = event.model_copy(
                update={"hash": compute_chain_hash(event.hashable(), prev_hash)}
            )
            if self._sink is not None:
                self._sink.append(event.model_copy(deep=True))
            self._entries.append(event)
            logger.debug("event %d %s by %s", event.sequence, kind.value, actor)
            return event.model_copy(deep=True)

    @property
    def head_hash(self) -> str:
        with self._lock:
            return self._entries[-1].hash if self._entries else ""

    @property
    def last(self) -> Event | None:
        with self._lock:
            return self._entries[-1].model_copy(deep=True) if self._entries else None

    def events(self, since: int = 0, limit: int | None = None) -> list[Event]:
        """Return events with a sequence greater than ``since``, in log order.

        Events are returned as copies; the recorded entries cannot be
        changed through them.
        """
        with self._lock:
            start = max(0, since)
            end = None if limit is None else start + max(0, limit)
            return [e.model_copy(deep=True) for e in self._entries[start:end]]

    def verify(self) -> None:
        """Recompute the hash chain of this log.

        Raises:
            EventLogIntegrityError: If a sequence, link or hash does not match
        """
        with self._lock:
            entries = list(self._entries)
        verify_chain(entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def verify_chain(entries: Iterable[Event]) -> None:
    """Check that a sequence of events forms an intact log.

    Args:
        entries: Events in log order, starting at sequence 1

    Raises:
        EventLogIntegrityError: If a sequence, link, hash or timestamp is out of place
    """
    expected_prev = ""
    previous_ts: datetime | None = None
    for position, event in enumerate(entries, start=1):
        if event.sequence != position:
            raise EventLogIntegrityError(
                f"Expected sequence {position}, found {event.sequence}"
            )
        if event.prev_hash != expected_prev:
            raise EventLogIntegrityError(
                f"Hash chain broken at sequence {event.sequence}"
            )
        if compute_chain_hash(event.hashable(), event.prev_hash) != event.hash:
            raise EventLogIntegrityError(f"Hash mismatch at sequence {event.sequence}")
        if previous_ts is not None and event.timestamp < previous_ts:
            raise EventLogIntegrityError(
                f"Timestamp goes backwards at sequence {event.sequence}"
            )
        expected_prev = event.hash
        previous_ts = event.timestamp
