# ABOUTME: Centralized configuration using Pydantic Settings.
# ABOUTME: Loads SMTP, database, analyzer and logging settings from environment variables and .env file.

from datetime import date, datetime
from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Email / SMTP (no host means local sendmail submission)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_pass: SecretStr | None = None
    smtp_encryption: Literal["tls", "none"] = "tls"
    smtp_timeout: float = 30.0
    smtp_ehlo_domain: str | None = None
    sender_email: str = "briefs@samfedbiz.com"
    sender_name: str = "samfedbiz.com Federal BD Intelligence"
    x_mailer: str = "samfedbiz.com Brief Sender"
    sendmail_path: str = "/usr/sbin/sendmail"
    send_delay_seconds: float = 0.1
    max_logged_errors: int = 5

    # Analyzer
    analyzer: Literal["auto", "rules", "gemini"] = "auto"
    gemini_api_key: SecretStr | None = None
    gemini_model: str = "gemini-2.5-flash"
    ai_temperature: float = 0.3
    ai_max_output_tokens: int = 300

    # Brief
    timezone: str = "Asia/Dubai"
    brief_base_url: str = "https://samfedbiz.com"
    news_lookback_hours: int = 24
    closing_soon_days: int = 7
    program_news_limit: int = 5
    program_solicitation_limit: int = 5
    closing_soon_limit: int = 3
    general_news_limit: int = 3
    previous_issues_dir: Path = Path("previous_issues")
    templates_dir: Path = PACKAGE_DIR / "email" / "templates"

    # Database
    database_url: str = "sqlite:///fedbiz_brief.db"
    db_echo: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # "console" or "json"

    def local_today(self) -> date:
        """Calendar day in the brief's configured timezone."""
        return datetime.now(ZoneInfo(self.timezone)).date()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Settings are loaded from environment variables and .env file.
    SMTP credentials are optional; without SMTP_HOST mail goes through sendmail.
    """
    return Settings()
