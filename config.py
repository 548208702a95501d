"""Configuration management with environment variable support."""

import os
import secrets
from dataclasses import dataclass, field


def _parse_cors_origins() -> list[str]:
    """Parse CORS_ORIGINS environment variable."""
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8000")
    return [o.strip() for o in origins.split(",") if o.strip()]


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class CORSConfig:
    """CORS configuration."""

    allowed_origins: list[str] = field(default_factory=_parse_cors_origins)
    allow_credentials: bool = True
    allow_methods: list[str] = field(default_factory=lambda: ["*"])
    allow_headers: list[str] = field(default_factory=lambda: ["*"])


@dataclass(frozen=True)
class RateLimitConfig:
    """Rate limiting configuration."""

    enabled: bool = field(default_factory=lambda: _env_flag("RATE_LIMIT_ENABLED", "true"))
    requests_per_minute: int = field(
        default_factory=lambda: int(os.getenv("RATE_LIMIT_RPM", "60"))
    )


@dataclass(frozen=True)
class SecurityConfig:
    """Security configuration."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
    )


@dataclass(frozen=True)
class TableConfig:
    """Table defaults for new engines."""

    num_decks: int = field(default_factory=lambda: int(os.getenv("BJ_NUM_DECKS", "6")))
    reshuffle_threshold: int = field(
        default_factory=lambda: int(os.getenv("BJ_RESHUFFLE_THRESHOLD", "15"))
    )
    starting_balance: int = field(
        default_factory=lambda: int(os.getenv("BJ_STARTING_BALANCE", "1000"))
    )
    default_bet: int = field(default_factory=lambda: int(os.getenv("BJ_DEFAULT_BET", "50")))
    auto_dealer: bool = field(default_factory=lambda: _env_flag("BJ_AUTO_DEALER", "true"))

    def __post_init__(self) -> None:
        """Validate table settings."""
        if self.num_decks < 1:
            raise ValueError("num_decks must be at least 1")
        if not 0 <= self.reshuffle_threshold < self.num_decks * 52:
            raise ValueError("reshuffle_threshold must be between 0 and the shoe size")
        if self.starting_balance < 0:
            raise ValueError("starting_balance cannot be negative")
        if self.default_bet < 1:
            raise ValueError("default_bet must be at least 1")


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: _env_flag("DEBUG", "false"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    session_ttl: int = 3600  # Session timeout in seconds

    table: TableConfig = field(default_factory=TableConfig)
    cors: CORSConfig = field(default_factory=CORSConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)


# Global configuration instance
config = AppConfig()
