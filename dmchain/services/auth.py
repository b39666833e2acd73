from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from dmchain.config import Settings
from dmchain.errors import ValidationError
from dmchain.models.user import normalize_address


class AuthError(Exception):
    """Base exception for auth-related errors."""

    pass


class InvalidTokenError(AuthError):
    """Exception raised when a token is invalid."""

    pass


class TokenExpiredError(AuthError):
    """Exception raised when a token has expired."""

    pass


class AuthService:
    """Service mapping bearer tokens to caller addresses.

    Tokens are HMAC-signed JWTs whose ``sub`` claim is the caller address.
    Proving ownership of the address happens upstream (wallet signature
    login) and is outside this service.

    Attributes:
        secret_key: Key used to sign and verify tokens
        algorithm: JWT signing algorithm
        expire_minutes: Lifetime of issued tokens
    """

    def __init__(self, settings: Settings) -> None:
        self.secret_key: str = settings.jwt_secret_key
        self.algorithm: str = settings.jwt_algorithm
        self.expire_minutes: int = settings.jwt_expire_minutes

    def issue_token(self, address: str) -> str:
        """Create a signed token for an address.

        Args:
            address: Caller address to embed as the subject

        Returns:
            The encoded JWT

        Raises:
            AuthError: If no signing key is configured
        """
        if not self.secret_key:
            raise AuthError("Token signing key is not configured")
        now = datetime.now(UTC)
        claims = {
            "sub": normalize_address(address),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=self.expire_minutes)).timestamp()),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def get_caller_address(self, token: str) -> str:
        """Validate a token and return the caller address.

        Raises:
            InvalidTokenError: If the token is malformed, badly signed or has no valid subject
            TokenExpiredError: If the token has expired
        """
        if not self.secret_key:
            raise InvalidTokenError("Token verification is not configured")
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

        try:
            return normalize_address(claims.get("sub", ""))
        except ValidationError:
            raise InvalidTokenError("Token subject is not a valid address")
