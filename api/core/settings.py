"""
Environment-driven settings.

Values are read once at startup (see `main.lifespan`) and passed around as a
frozen `Settings` object. Helpers follow the same lenient parsing rules:
blank values fall back to the default, malformed numbers fall back too.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_LDAP_HOST = "ldap.forumsys.com:389"
DEFAULT_LDAP_BASE_DN = "dc=example,dc=com"
DEFAULT_LDAP_BIND_DN = "cn=read-only-admin,dc=example,dc=com"
DEFAULT_LDAP_BIND_PASSWORD = "password"
DEFAULT_HOLIDAY_FEED_URL = "https://www.gov.uk/bank-holidays.json"
DEFAULT_HOLIDAY_DIVISION = "england-and-wales"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def split_csv(raw: str) -> tuple[str, ...]:
    # Empty entries are dropped so "a,,b" or a trailing comma never allow-lists "".
    return tuple(part.strip() for part in (raw or "").split(",") if part.strip())


def load_env_file() -> None:
    """
    Load a local `.env` file unless SCHEDULER_API_ENV says we run in a managed
    environment (container, CI) where variables are injected directly.
    """
    if not os.environ.get("SCHEDULER_API_ENV", "").strip():
        load_dotenv()


def database_url() -> str:
    url = _env_str("DATABASE_URI") or _env_str("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URI is not set.")
    return url


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str = ""
    allowed_tokens: tuple[str, ...] = ()
    allowed_origins: tuple[str, ...] = ()
    cookie_secure: bool = False
    ldap_host: str = DEFAULT_LDAP_HOST
    ldap_base_dn: str = DEFAULT_LDAP_BASE_DN
    ldap_bind_dn: str = DEFAULT_LDAP_BIND_DN
    ldap_bind_password: str = DEFAULT_LDAP_BIND_PASSWORD
    ldap_user_attribute: str = "uid"
    holiday_feed_url: str = DEFAULT_HOLIDAY_FEED_URL
    holiday_division: str = DEFAULT_HOLIDAY_DIVISION
    holiday_sync_enabled: bool = True
    holiday_sync_interval_hours: int = 6
    log_level: str = "INFO"


def load_settings() -> Settings:
    """
    Build settings from the process environment.

    Raises RuntimeError when the database connection string is missing; the
    service cannot start without it.
    """
    interval = _env_int("HOLIDAY_SYNC_INTERVAL_HOURS", 6)
    if interval <= 0:
        interval = 6

    return Settings(
        database_url=database_url(),
        jwt_secret=_env_str("JWT_AUTH_SECRET_KEY"),
        allowed_tokens=split_csv(os.environ.get("ALLOWED_TOKENS", "")),
        allowed_origins=split_csv(os.environ.get("ALLOWED_ORIGINS", "")),
        cookie_secure=_env_bool("COOKIE_SECURE", False),
        ldap_host=_env_str("LDAP_HOST", DEFAULT_LDAP_HOST),
        ldap_base_dn=_env_str("LDAP_BASE_DN", DEFAULT_LDAP_BASE_DN),
        ldap_bind_dn=_env_str("LDAP_BIND_DN", DEFAULT_LDAP_BIND_DN),
        ldap_bind_password=_env_str("LDAP_BIND_PASSWORD", DEFAULT_LDAP_BIND_PASSWORD),
        ldap_user_attribute=_env_str("LDAP_USER_ATTRIBUTE", "uid"),
        holiday_feed_url=_env_str("HOLIDAY_FEED_URL", DEFAULT_HOLIDAY_FEED_URL),
        holiday_division=_env_str("HOLIDAY_DIVISION", DEFAULT_HOLIDAY_DIVISION),
        holiday_sync_enabled=_env_bool("HOLIDAY_SYNC_ENABLED", True),
        holiday_sync_interval_hours=interval,
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
