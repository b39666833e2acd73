"""Runtime configuration.

All settings can be overridden through environment variables with the
``DMCHAIN_`` prefix, e.g. ``DMCHAIN_OWNER_ADDRESS=0x...``.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the messaging protocol and its HTTP service."""

    model_config = SettingsConfigDict(
        env_prefix="DMCHAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    owner_address: str = Field(
        default="0x" + "0" * 39 + "1",
        description="Protocol owner, the only address allowed to withdraw fees",
    )
    message_fee: int = Field(
        default=10**15,
        ge=0,
        description="Minimum non-zero fee accepted with a message, in wei",
    )

    # Event persistence. An empty URI keeps the event log in memory only.
    neo4j_uri: str = Field(default="", description="Bolt URI of the Neo4j server")
    neo4j_user: str = Field(default="neo4j")
    neo4j_password: str = Field(default="")
    neo4j_database: str = Field(default="neo4j")

    jwt_secret_key: str = Field(
        default="",
        description="HMAC secret used to sign and verify bearer tokens",
    )
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_minutes: int = Field(default=60, gt=0)

    log_level: str = Field(default="INFO")

    @field_validator("owner_address")
    @classmethod
    def lowercase_owner(cls, v: str) -> str:
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def uppercase_level(cls, v: str) -> str:
        return v.upper()

    @property
    def persistence_enabled(self) -> bool:
        return bool(self.neo4j_uri)


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
