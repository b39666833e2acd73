class ProtocolError(Exception):
    """Base exception for every rejected protocol operation.

    A raised ProtocolError guarantees that no state was changed by the call.
    """

    pass


class ValidationError(ProtocolError):
    """Exception raised for malformed input such as length limits or bad addresses."""

    pass


class InsufficientFeeError(ValidationError):
    """Exception raised when a non-zero fee is below the per-message fee."""

    pass


class NotActiveError(ProtocolError):
    """Exception raised when an address has no active profile."""

    pass


class ForbiddenError(ProtocolError):
    """Exception raised when the caller is not allowed to perform the operation."""

    pass


class BlockedError(ForbiddenError):
    """Exception raised when a block exists in either direction between two users."""

    pass


class NotFoundError(ProtocolError):
    """Exception raised when a message id is outside the recorded range."""

    pass


class AlreadyDeletedError(ProtocolError):
    """Exception raised when deleting a message that is already deleted."""

    pass


class AlreadyReportedError(ProtocolError):
    """Exception raised when reporting a message that is already reported."""

    pass


class NotBlockedError(ProtocolError):
    """Exception raised when removing a block that does not exist."""

    pass


class NotFollowingError(ProtocolError):
    """Exception raised when removing a follow that does not exist."""

    pass


class InvalidTargetError(ProtocolError):
    """Exception raised when a block or follow target is zero, self, or already set."""

    pass


class EmptyVaultError(ProtocolError):
    """Exception raised when withdrawing from a vault with zero balance."""

    pass


class EventLogIntegrityError(ProtocolError):
    """Exception raised when the event hash chain does not verify."""

    pass


class EventStoreError(ProtocolError):
    """Exception raised when the event store cannot persist or load events."""

    pass


class ReplayError(ProtocolError):
    """Exception raised when replaying an event log diverges from the recorded events."""

    pass
