"""
Store configuration using Pydantic Settings.

Configuration values can be set via environment variables or .env file.
`StoreOptions` is the per-instance surface the session store recognises;
build one from `Settings` or construct it directly.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from pydantic_settings import BaseSettings, SettingsConfigDict

from sessionstore.db.health import supports_limit_subquery

TtlOption = Union[int, Callable[..., int], None]
ErrorHandler = Callable[[Any, BaseException], None]


class Settings(BaseSettings):
    """Store settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database settings
    DATABASE_URL: str = "sqlite:///./data/sessions.db"

    # Expiry and cleanup
    # Unset TTL means the cookie max-age (or one day) decides
    SESSION_TTL: Optional[int] = None
    SESSION_CLEANUP_LIMIT: int = 0
    # Unset means auto-detect from the bound dialect
    SESSION_LIMIT_SUBQUERY: Optional[bool] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    LOG_INCLUDE_SENSITIVE: bool = False


@dataclass
class StoreOptions:
    """Options recognised by SessionStore"""

    ttl: TtlOption = None
    cleanup_limit: int = 0
    limit_subquery: bool = True
    on_error: Optional[ErrorHandler] = None

    def __post_init__(self) -> None:
        if self.cleanup_limit is None:
            self.cleanup_limit = 0
        if self.cleanup_limit < 0:
            raise ValueError("cleanup_limit must be zero or a positive integer")
        if isinstance(self.ttl, bool):
            raise ValueError("ttl must be a number of seconds or a callable")
        if isinstance(self.ttl, (int, float)) and self.ttl < 0:
            raise ValueError("ttl must not be a negative number of seconds")

    @classmethod
    def from_settings(
        cls,
        config: Settings,
        dialect_name: Optional[str] = None,
        on_error: Optional[ErrorHandler] = None,
    ) -> "StoreOptions":
        """
        Build store options from application settings.

        Args:
            config: Loaded settings
            dialect_name: SQLAlchemy dialect name of the bound engine, used when
                SESSION_LIMIT_SUBQUERY is not set explicitly
            on_error: Optional custom failure handler

        Returns:
            StoreOptions instance
        """
        limit_subquery = config.SESSION_LIMIT_SUBQUERY
        if limit_subquery is None:
            limit_subquery = supports_limit_subquery(dialect_name)

        return cls(
            ttl=config.SESSION_TTL,
            cleanup_limit=config.SESSION_CLEANUP_LIMIT,
            limit_subquery=limit_subquery,
            on_error=on_error,
        )


# Global settings instance
settings = Settings()
