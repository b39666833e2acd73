from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Conversation(BaseModel):
    """Model representing the thread between an unordered pair of addresses.

    Only the pointer to the latest message is kept, not the history.

    Attributes:
        conversation_id: Sequential identifier, starting at 1
        participant_a: First participant, in the order of the opening message
        participant_b: Second participant
        last_message_id: Most recent message exchanged by the pair
        created_at: When the first message was exchanged
        is_active: Whether the conversation is open
    """

    model_config = ConfigDict(frozen=True)

    conversation_id: int = Field(ge=1)
    participant_a: str
    participant_b: str
    last_message_id: int = Field(ge=1)
    created_at: datetime
    is_active: bool = True
