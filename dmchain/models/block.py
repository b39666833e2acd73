from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Block(BaseModel):
    """Model representing a block relationship between addresses.

    Attributes:
        blocker: Address doing the blocking
        blocked: Address being blocked
        created_at: When the block was created
    """

    model_config = ConfigDict(frozen=True)

    blocker: str
    blocked: str
    created_at: datetime
