from __future__ import annotations

import os
from dataclasses import dataclass


TRANSITION_POLICIES = {"permissive", "strict"}


def _csv(value: str) -> list[str]:
    items: list[str] = []
    for part in (value or "").split(","):
        item = part.strip()
        if item:
            items.append(item)
    return items


def _env_str(name: str, default: str) -> str:
    return str(os.getenv(name, default) or default)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "") or "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


@dataclass(frozen=True)
class BaseConfig:
    ENV: str = "development"
    DEBUG: bool = False
    TESTING: bool = False

    APP_VERSION: str = "dev"
    APP_TIMEZONE: str = "America/New_York"

    DATABASE_URL: str = "sqlite:///./hrm.db"

    JWT_SECRET: str = "dev-secret"
    # Sessions last 30 days.
    JWT_EXP_MINUTES: int = 43200
    SESSION_COOKIE_NAME: str = "session"
    SESSION_COOKIE_SECURE: bool = False

    CORS_ORIGINS: list[str] | str = "http://localhost:3000,http://127.0.0.1:3000"
    CORS_ALLOW_CREDENTIALS: bool = True

    LOG_LEVEL: str = "INFO"

    RATE_LIMIT_GLOBAL: str = "1200 per minute"
    RATE_LIMIT_DEFAULT: str = "300 per minute"
    RATE_LIMIT_LOGIN: str = "30 per minute"

    TRUST_PROXY_HEADERS: bool = True

    TRANSITION_POLICY: str = "permissive"

    EMAIL_API_URL: str = "https://api.resend.com/emails"
    EMAIL_API_KEY: str = ""
    EMAIL_FROM: str = "noreply@riseandshinehrm.com"
    EMAIL_TIMEOUT_SECONDS: float = 10.0
    EMAIL_SEND_ASYNC: bool = True

    def __post_init__(self) -> None:
        for name in (
            "APP_VERSION",
            "APP_TIMEZONE",
            "DATABASE_URL",
            "JWT_SECRET",
            "SESSION_COOKIE_NAME",
            "RATE_LIMIT_GLOBAL",
            "RATE_LIMIT_DEFAULT",
            "RATE_LIMIT_LOGIN",
            "EMAIL_API_URL",
            "EMAIL_FROM",
        ):
            object.__setattr__(self, name, _env_str(name, getattr(self, name)))

        object.__setattr__(self, "JWT_EXP_MINUTES", _env_int("JWT_EXP_MINUTES", self.JWT_EXP_MINUTES))
        object.__setattr__(
            self, "SESSION_COOKIE_SECURE", _env_bool("SESSION_COOKIE_SECURE", self.SESSION_COOKIE_SECURE)
        )

        cors_raw = os.getenv("CORS_ORIGINS")
        if cors_raw is not None:
            cors_raw = str(cors_raw or "").strip()
            if cors_raw == "*":
                object.__setattr__(self, "CORS_ORIGINS", "*")
            else:
                object.__setattr__(self, "CORS_ORIGINS", _csv(cors_raw))
        else:
            object.__setattr__(self, "CORS_ORIGINS", _csv(str(self.CORS_ORIGINS)))

        object.__setattr__(
            self, "CORS_ALLOW_CREDENTIALS", _env_bool("CORS_ALLOW_CREDENTIALS", self.CORS_ALLOW_CREDENTIALS)
        )

        object.__setattr__(self, "LOG_LEVEL", _env_str("LOG_LEVEL", self.LOG_LEVEL).upper())
        object.__setattr__(self, "TRUST_PROXY_HEADERS", _env_bool("TRUST_PROXY_HEADERS", self.TRUST_PROXY_HEADERS))

        object.__setattr__(
            self, "TRANSITION_POLICY", _env_str("TRANSITION_POLICY", self.TRANSITION_POLICY).strip().lower()
        )

        # RESEND_API_KEY is the name the provider's own docs use.
        api_key = os.getenv("EMAIL_API_KEY") or os.getenv("RESEND_API_KEY") or self.EMAIL_API_KEY
        object.__setattr__(self, "EMAIL_API_KEY", str(api_key or "").strip())
        object.__setattr__(
            self, "EMAIL_TIMEOUT_SECONDS", _env_float("EMAIL_TIMEOUT_SECONDS", self.EMAIL_TIMEOUT_SECONDS)
        )
        object.__setattr__(self, "EMAIL_SEND_ASYNC", _env_bool("EMAIL_SEND_ASYNC", self.EMAIL_SEND_ASYNC))

    @property
    def IS_PRODUCTION(self) -> bool:
        return str(self.ENV or "").lower() == "production"

    def validate(self) -> None:
        if self.IS_PRODUCTION and str(self.JWT_SECRET or "").strip() in {"", "dev-secret"}:
            raise RuntimeError("JWT_SECRET must be set in production")
        if self.IS_PRODUCTION and str(self.DATABASE_URL or "").startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production")
        if self.TRANSITION_POLICY not in TRANSITION_POLICIES:
            raise RuntimeError(
                f"TRANSITION_POLICY must be one of {sorted(TRANSITION_POLICIES)}, got {self.TRANSITION_POLICY!r}"
            )


@dataclass(frozen=True)
class DevelopmentConfig(BaseConfig):
    ENV: str = "development"
    DEBUG: bool = True


@dataclass(frozen=True)
class ProductionConfig(BaseConfig):
    ENV: str = "production"
    DEBUG: bool = False
    SESSION_COOKIE_SECURE: bool = True


@dataclass(frozen=True)
class TestingConfig(BaseConfig):
    ENV: str = "testing"
    TESTING: bool = True
    JWT_SECRET: str = "test-secret"
    EMAIL_SEND_ASYNC: bool = False


def get_config() -> BaseConfig:
    env = str(os.getenv("ENV") or os.getenv("APP_ENV") or "development").strip().lower()
    if env in {"prod", "production"}:
        cfg: BaseConfig = ProductionConfig()
    elif env in {"test", "testing"}:
        cfg = TestingConfig()
    else:
        cfg = DevelopmentConfig()

    cfg.validate()
    return cfg
