from pydantic import BaseModel, ConfigDict, Field


class CreateProfileRequest(BaseModel):
    """Body of a profile create or update.

    Length limits are enforced by the identity registry so that the
    same rules apply to every caller.

    Attributes:
        username: Display name
        bio: Biography
        avatar: Opaque avatar reference
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(description="Display name, 1 to 50 characters")
    bio: str = Field("", description="Biography, up to 200 characters")
    avatar: str = Field("", description="Opaque avatar reference")


class SendMessageRequest(BaseModel):
    """Body of a send message call.

    Attributes:
        recipient: Address receiving the message
        content: Opaque message content
        message_type: Client-defined message kind
        fee: Optional fee paid with the message
    """

    model_config = ConfigDict(frozen=True)

    recipient: str = Field(description="Address receiving the message")
    content: str = Field(description="Message content, 1 to 1000 characters")
    message_type: str = Field("text", description="Client-defined message kind")
    fee: int = Field(0, ge=0, description="Fee paid with the message, in wei")


class ReportMessageRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str = Field("", description="Why the message is reported")
