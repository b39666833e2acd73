from pydantic import BaseModel, ConfigDict, Field


class HealthCheckResponseSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = Field(description="Whether the service is up")


class MessageIdResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message_id: int = Field(description="ID of the created message")


class CountResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = Field(description="Number of matching records")


class RelationResponse(BaseModel):
    """Answer to a directed relation check.

    Attributes:
        source: Address on the origin side of the relation
        target: Address on the receiving side of the relation
        value: Whether the relation exists
    """

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    value: bool


class VaultBalanceResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    balance: int = Field(description="Fees waiting to be withdrawn")
    total_withdrawn: int = Field(description="Fees already paid out to the owner")
    message_fee: int = Field(description="Minimum non-zero fee per message")


class WithdrawResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str = Field(description="Address the fees were paid to")
    amount: int = Field(description="Amount paid out")


class EventLogVerificationResponse(BaseModel):
    """Result of recomputing the event hash chain.

    Attributes:
        valid: Whether the chain verified
        length: Number of events checked
        head_hash: Hash of the latest event
        detail: Failure description when the chain does not verify
    """

    model_config = ConfigDict(frozen=True)

    valid: bool
    length: int
    head_hash: str
    detail: str | None = None
