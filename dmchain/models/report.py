from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Report(BaseModel):
    """Model representing a moderation report on a message.

    Attributes:
        message_id: ID of the reported message
        reporter: Address that filed the report
        reason: Free text reason given by the reporter
        created_at: When the report was filed
    """

    model_config = ConfigDict(frozen=True)

    message_id: int
    reporter: str
    reason: str
    created_at: datetime
