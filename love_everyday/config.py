"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "love-everyday"
    debug: bool = False
    log_level: str = "INFO"

    # Parent's wall clock, used for sleep windows
    timezone: str = "Asia/Seoul"

    # Survival alert thresholds
    default_alert_hours: int = 12
    min_alert_hours: int = 1
    max_alert_hours: int = 72
    warning_lead_minutes: int = 60
    default_elderly_name: str = "부모님"

    # Status monitor
    status_tick_seconds: float = 60.0
    stream_retry_seconds: float = 60.0  # 0 disables automatic retry

    # Notifications
    critical_notification_cooldown_minutes: int = 60  # 0 disables the cooldown

    model_config = {"env_prefix": "LOVE_EVERYDAY_"}


settings = Settings()
