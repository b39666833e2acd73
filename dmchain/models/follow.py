from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Follow(BaseModel):
    """Model representing a follow relationship between addresses.

    Attributes:
        follower: Address doing the following
        following: Address being followed
        created_at: When the follow was created
    """

    model_config = ConfigDict(frozen=True)

    follower: str
    following: str
    created_at: datetime
