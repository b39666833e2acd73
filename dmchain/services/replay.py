"""Rebuild protocol state from a recorded event log.

Events are fed back through the public operations with the clock pinned to
each recorded timestamp. Operations are deterministic, so an intact log
regenerates byte-identical events; any difference means the log was
tampered with or produced by incompatible rules.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable

from dmchain.errors import ProtocolError, ReplayError
from dmchain.models.event import Event, EventKind
from dmchain.services.event_log import utc_now
from dmchain.services.protocol import MessagingProtocol

logger = logging.getLogger(__name__)


class _PinnedClock:
    """Returns the pinned timestamp while replaying, wall time afterwards."""

    def __init__(self) -> None:
        self.current: datetime | None = None

    def __call__(self) -> datetime:
        return self.current if self.current is not None else utc_now()


def _apply_profile(protocol: MessagingProtocol, event: Event) -> None:
    p = event.payload
    protocol.create_profile(event.actor, p["username"], p["bio"], p["avatar"])


def _apply_send(protocol: MessagingProtocol, event: Event) -> None:
    p = event.payload
    protocol.send_message(
        event.actor, p["recipient"], p["content"], p["message_type"], p["fee_paid"]
    )


def _apply_delete(protocol: MessagingProtocol, event: Event) -> None:
    protocol.delete_message(event.actor, event.payload["message_id"])


def _apply_report(protocol: MessagingProtocol, event: Event) -> None:
    p = event.payload
    protocol.report_message(event.actor, p["message_id"], p["reason"])


def _apply_block(protocol: MessagingProtocol, event: Event) -> None:
    protocol.block_user(event.actor, event.payload["target"])


def _apply_unblock(protocol: MessagingProtocol, event: Event) -> None:
    protocol.unblock_user(event.actor, event.payload["target"])


def _apply_follow(protocol: MessagingProtocol, event: Event) -> None:
    protocol.follow_user(event.actor, event.payload["target"])


def _apply_unfollow(protocol: MessagingProtocol, event: Event) -> None:
    protocol.unfollow_user(event.actor, event.payload["target"])


def _apply_withdraw(protocol: MessagingProtocol, event: Event) -> None:
    protocol.withdraw(event.actor)


_HANDLERS: dict[EventKind, Callable[[MessagingProtocol, Event], None]] = {
    EventKind.PROFILE_UPDATED: _apply_profile,
    EventKind.MESSAGE_SENT: _apply_send,
    EventKind.MESSAGE_DELETED: _apply_delete,
    EventKind.MESSAGE_REPORTED: _apply_report,
    EventKind.USER_BLOCKED: _apply_block,
    EventKind.USER_UNBLOCKED: _apply_unblock,
    EventKind.USER_FOLLOWED: _apply_follow,
    EventKind.USER_UNFOLLOWED: _apply_unfollow,
    EventKind.FEES_WITHDRAWN: _apply_withdraw,
}


def rebuild(events: Iterable[Event], owner: str, message_fee: int) -> MessagingProtocol:
    """Replay recorded events into a fresh protocol.

    Args:
        events: Recorded events in log order
        owner: Protocol owner the log was produced with
        message_fee: Per-message fee the log was produced with

    Returns:
        A protocol whose state and event log match the recorded log

    Raises:
        ReplayError: If an event cannot be re-applied or regenerates differently
    """
    clock = _PinnedClock()
    protocol = MessagingProtocol(owner, message_fee, clock=clock)

    for recorded in events:
        clock.current = recorded.timestamp
        handler = _HANDLERS[recorded.kind]
        try:
            handler(protocol, recorded)
        except (KeyError, ProtocolError) as e:
            raise ReplayError(
                f"Event {recorded.sequence} ({recorded.kind.value}) cannot be replayed: {e}"
            ) from e

        produced = protocol.event_log.last
        if produced is None or produced.hash != recorded.hash:
            raise ReplayError(
                f"Event {recorded.sequence} ({recorded.kind.value}) does not match its recorded hash"
            )
        logger.debug("replayed event %d", recorded.sequence)

    clock.current = None
    logger.info("rebuilt protocol from %d events", len(protocol.event_log))
    return protocol
