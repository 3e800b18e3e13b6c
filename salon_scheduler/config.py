"""
Centralized configuration with environment variable overrides.

Offer windows, gap thresholds, cron intervals and business defaults
are configurable here. Nothing is hardcoded in engine or store logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from salon_scheduler.logging_context import TriggerIdFilter

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BusinessConfig:
    """Business-wide defaults used when a schedule omits a value."""

    name: str = os.getenv("BUSINESS_NAME", "Salon")
    default_open: str = os.getenv("DEFAULT_OPEN_TIME", "09:30")
    default_close: str = os.getenv("DEFAULT_CLOSE_TIME", "19:00")
    default_service_duration: int = _safe_int("DEFAULT_SERVICE_DURATION", "30")
    booking_horizon_months: int = _safe_int("BOOKING_HORIZON_MONTHS", "2")


@dataclass(frozen=True)
class WaitlistConfig:
    """Offer protocol and matching thresholds."""

    offer_ttl_minutes: int = _safe_int("OFFER_TTL_MINUTES", "20")
    min_gap_minutes: int = _safe_int("MIN_GAP_MINUTES", "15")
    max_match_retries: int = _safe_int("MAX_MATCH_RETRIES", "3")
    notification_retries: int = _safe_int("NOTIFICATION_RETRIES", "2")


@dataclass(frozen=True)
class CronConfig:
    """Intervals for the background sweeps."""

    timeout_sweep_seconds: float = _safe_float("TIMEOUT_SWEEP_SECONDS", "60")
    scan_interval_seconds: float = _safe_float("SCAN_INTERVAL_SECONDS", "1800")
    startup_delay_seconds: float = _safe_float("STARTUP_DELAY_SECONDS", "5")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    waitlist: WaitlistConfig = field(default_factory=WaitlistConfig)
    cron: CronConfig = field(default_factory=CronConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    schedule_file: str = os.getenv("SCHEDULE_FILE", "schedule.json")
    state_file: str = os.getenv("STATE_FILE", "scheduler_state.json")
    engine_name: str = os.getenv("ENGINE_NAME", "salon-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.business.default_service_duration < 1:
        raise ValueError(
            "DEFAULT_SERVICE_DURATION must be >= 1, "
            f"got {config.business.default_service_duration}"
        )
    if config.business.booking_horizon_months < 1:
        raise ValueError(
            "BOOKING_HORIZON_MONTHS must be >= 1, "
            f"got {config.business.booking_horizon_months}"
        )
    if config.waitlist.offer_ttl_minutes < 1:
        raise ValueError(
            f"OFFER_TTL_MINUTES must be >= 1, got {config.waitlist.offer_ttl_minutes}"
        )
    if config.waitlist.min_gap_minutes < 1:
        raise ValueError(
            f"MIN_GAP_MINUTES must be >= 1, got {config.waitlist.min_gap_minutes}"
        )
    if config.waitlist.max_match_retries < 0:
        raise ValueError(
            f"MAX_MATCH_RETRIES must be >= 0, got {config.waitlist.max_match_retries}"
        )
    if config.waitlist.notification_retries < 0:
        raise ValueError(
            "NOTIFICATION_RETRIES must be >= 0, "
            f"got {config.waitlist.notification_retries}"
        )

    for interval_name, interval_value in [
        ("TIMEOUT_SWEEP_SECONDS", config.cron.timeout_sweep_seconds),
        ("SCAN_INTERVAL_SECONDS", config.cron.scan_interval_seconds),
    ]:
        if interval_value <= 0:
            raise ValueError(f"{interval_name} must be > 0, got {interval_value}")

    if config.cron.startup_delay_seconds < 0:
        raise ValueError(
            "STARTUP_DELAY_SECONDS must be >= 0, "
            f"got {config.cron.startup_delay_seconds}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s [%(trigger_id)s]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, TriggerIdFilter) for f in handler.filters):
            handler.addFilter(TriggerIdFilter())
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
