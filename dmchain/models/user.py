import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from dmchain.errors import ValidationError

ZERO_ADDRESS = "0x" + "0" * 40
MAX_USERNAME_LENGTH = 50
MAX_BIO_LENGTH = 200

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value: str) -> str:
    """Validate an address and return its lower-case form.

    Args:
        value: Address in ``0x`` + 40 hex characters form

    Returns:
        The lower-cased address

    Raises:
        ValidationError: If the value is not a well-formed address
    """
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise ValidationError(f"Invalid address: {value!r}")
    return value.lower()


class Profile(BaseModel):
    """Model representing a registered identity.

    Attributes:
        address: Identity key of the profile
        username: Display name, 1 to 50 characters
        bio: Free text biography, up to 200 characters
        avatar: Opaque avatar reference (URL, content hash, ...)
        is_active: Whether the profile has been created
        joined_at: When the profile was first created
        last_seen: Last profile update or sent message
    """

    model_config = ConfigDict(frozen=True)

    address: str
    username: str = Field(default="", max_length=MAX_USERNAME_LENGTH)
    bio: str = Field(default="", max_length=MAX_BIO_LENGTH)
    avatar: str = ""
    is_active: bool = False
    joined_at: datetime | None = None
    last_seen: datetime | None = None
