"""
Runtime configuration

Everything is read from the process environment once, at import time. A
.env file, when present, is loaded first; real environment variables win.
"""
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class StatsConfig:
    # Revenue buckets use the product category join, order counts use item name keywords.
    cosmetics_category: str = "Cosmetics"
    cosmetics_keywords: str = "cosmetic|beauty|serum|lip"


@dataclass
class Settings:
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    port: int = 8000
    admin_token: Optional[str] = None
    mail_user: Optional[str] = None
    mail_password: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    notify_max_attempts: int = 3
    notify_retry_delay: float = 2.0
    order_code_max_attempts: int = 25
    frontend_dist: Optional[str] = None
    log_level: str = "INFO"
    stats: StatsConfig = field(default_factory=StatsConfig)

    @property
    def mail_enabled(self) -> bool:
        return bool(self.mail_user and self.mail_password)


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)
    return Settings(
        database_url=os.getenv("DATABASE_URL"),
        database_name=os.getenv("DATABASE_NAME"),
        port=_int_env("PORT", 8000),
        admin_token=os.getenv("ADMIN_TOKEN"),
        mail_user=os.getenv("GMAIL_USER"),
        mail_password=os.getenv("GMAIL_PASS"),
        smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=_int_env("SMTP_PORT", 465),
        notify_max_attempts=max(1, _int_env("NOTIFY_MAX_ATTEMPTS", 3)),
        notify_retry_delay=_float_env("NOTIFY_RETRY_DELAY", 2.0),
        order_code_max_attempts=max(1, _int_env("ORDER_CODE_MAX_ATTEMPTS", 25)),
        frontend_dist=os.getenv("FRONTEND_DIST"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        stats=StatsConfig(
            cosmetics_category=os.getenv("STATS_COSMETICS_CATEGORY", "Cosmetics"),
            cosmetics_keywords=os.getenv("STATS_COSMETICS_KEYWORDS", "cosmetic|beauty|serum|lip"),
        ),
    )


settings = load_settings()


def get_settings() -> Settings:
    return settings
