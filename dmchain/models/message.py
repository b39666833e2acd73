from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

MAX_CONTENT_LENGTH = 1000


class Message(BaseModel):
    """Model representing a direct message between two addresses.

    Messages are never removed. Deleting or reporting only flips a flag.

    Attributes:
        message_id: Sequential identifier, starting at 1
        sender: Address of the sender
        recipient: Address of the recipient
        content: Opaque content, possibly encrypted by the client
        timestamp: When the message was recorded
        message_type: Client-defined kind ("text", "image", ...)
        is_deleted: Whether the sender deleted the message
        is_reported: Whether a participant reported the message
    """

    model_config = ConfigDict(frozen=True)

    message_id: int = Field(ge=1)
    sender: str
    recipient: str
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH)
    timestamp: datetime
    message_type: str = "text"
    is_deleted: bool = False
    is_reported: bool = False
