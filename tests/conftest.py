import json
from datetime import UTC, datetime, timedelta

import pytest

from dmchain.config import Settings
from dmchain.models.event import Event
from dmchain.services.auth import AuthService
from dmchain.services.protocol import MessagingProtocol

MESSAGE_FEE = 1_000


class StepClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


# Address fixtures
@pytest.fixture
def owner() -> str:
    return "0x" + "f" * 40


@pytest.fixture
def alice() -> str:
    return "0x" + "a" * 40


@pytest.fixture
def bob() -> str:
    return "0x" + "b" * 40


@pytest.fixture
def carol() -> str:
    return "0x" + "c" * 40


@pytest.fixture
def outsider() -> str:
    return "0x" + "d" * 40


# Configuration fixtures
@pytest.fixture
def message_fee() -> int:
    return MESSAGE_FEE


@pytest.fixture
def settings(owner: str) -> Settings:
    return Settings(
        owner_address=owner,
        message_fee=MESSAGE_FEE,
        neo4j_uri="",
        jwt_secret_key="test-secret",
    )


@pytest.fixture
def auth_service(settings: Settings) -> AuthService:
    return AuthService(settings)


# Protocol fixtures
@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def protocol(owner: str, clock: StepClock) -> MessagingProtocol:
    return MessagingProtocol(owner, MESSAGE_FEE, clock=clock)


@pytest.fixture
def registered(
    protocol: MessagingProtocol, alice: str, bob: str, carol: str
) -> MessagingProtocol:
    """Protocol with alice, bob and carol holding active profiles."""
    protocol.create_profile(alice, "alice", "hi", "")
    protocol.create_profile(bob, "bob", "yo", "")
    protocol.create_profile(carol, "carol", "", "ipfs://carol")
    return protocol


@pytest.fixture
def as_node():
    """Convert an event into the properties of its ProtocolEvent node."""

    def convert(event: Event) -> dict:
        return {
            "sequence": event.sequence,
            "kind": event.kind.value,
            "actor": event.actor,
            "subject_ids": list(event.subject_ids),
            "payload": json.dumps(event.payload, sort_keys=True),
            "timestamp": event.timestamp.isoformat(),
            "prev_hash": event.prev_hash,
            "hash": event.hash,
        }

    return convert
