"""
Configuration management.
Loads from config_local.py (gitignored) for secrets, with defaults.
"""
from typing import Optional

# Try to import local config (gitignored)
try:
    from app.config_local import (
        DATABASE_URL,
        SESSION_COOKIE_NAME,
        SESSION_SECRET,
        PAYMENT_EVENTS_SECRET,
        STRIPE_SECRET_KEY,
        STRIPE_WEBHOOK_SECRET,
    )
    # Business policy knobs are optional in config_local
    try:
        from app.config_local import (
            SESSION_TTL_HOURS,
            DEFAULT_EMPLOYEE_LIMIT,
            DEFAULT_SUBSCRIPTION_TIER,
            RESERVE_ON_APPROVAL,
            RECONCILIATION_INTERVAL_MINUTES,
            ENABLE_RECONCILIATION_JOB,
            FRONTEND_ORIGINS,
        )
    except ImportError:
        SESSION_TTL_HOURS = 24
        DEFAULT_EMPLOYEE_LIMIT = 5
        DEFAULT_SUBSCRIPTION_TIER = "basic"
        RESERVE_ON_APPROVAL = True  # Decrement availability when a request is approved
        RECONCILIATION_INTERVAL_MINUTES = 15
        ENABLE_RECONCILIATION_JOB = True
        FRONTEND_ORIGINS = ["http://localhost:5173"]
except ImportError:
    # Fallback defaults (development only)
    DATABASE_URL: str = "sqlite:///./assetverse.db"
    SESSION_COOKIE_NAME: str = "assetverse_session"
    SESSION_SECRET: Optional[str] = None
    SESSION_TTL_HOURS: int = 24
    PAYMENT_EVENTS_SECRET: Optional[str] = None  # Shared secret for internal payment event delivery
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    DEFAULT_EMPLOYEE_LIMIT: int = 5
    DEFAULT_SUBSCRIPTION_TIER: str = "basic"
    RESERVE_ON_APPROVAL: bool = True  # Decrement availability when a request is approved
    RECONCILIATION_INTERVAL_MINUTES: int = 15
    ENABLE_RECONCILIATION_JOB: bool = True
    FRONTEND_ORIGINS: list[str] = ["http://localhost:5173"]


def get_settings():
    """Return settings object (for FastAPI dependency injection if needed)."""
    return type("Settings", (), {
        "database_url": DATABASE_URL,
        "session_cookie_name": SESSION_COOKIE_NAME,
        "session_secret": SESSION_SECRET,
        "session_ttl_hours": SESSION_TTL_HOURS,
        "payment_events_secret": PAYMENT_EVENTS_SECRET,
        "stripe_secret_key": STRIPE_SECRET_KEY,
        "stripe_webhook_secret": STRIPE_WEBHOOK_SECRET,
        "default_employee_limit": DEFAULT_EMPLOYEE_LIMIT,
        "default_subscription_tier": DEFAULT_SUBSCRIPTION_TIER,
        "reserve_on_approval": RESERVE_ON_APPROVAL,
        "reconciliation_interval_minutes": RECONCILIATION_INTERVAL_MINUTES,
        "enable_reconciliation_job": ENABLE_RECONCILIATION_JOB,
        "frontend_origins": FRONTEND_ORIGINS,
    })()
