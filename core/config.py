"""
Centralized configuration for the TalkTime notification service.

Every setting is read from the environment at call time so tests can
patch os.environ without reloading modules.
"""

import os


def _get_bool(name: str) -> bool:
    return os.getenv(name, "").lower() in ("true", "1", "yes")


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def is_dev_mode() -> bool:
    """Check if running in development mode (--dev flag or DEV_MODE env)."""
    return _get_bool("DEV_MODE")


def is_production() -> bool:
    """Check if running on Railway (production environment)."""
    return bool(os.environ.get("RAILWAY_ENVIRONMENT"))


def get_api_port() -> int:
    """Get API server port from env or default."""
    return _get_int("API_PORT", 8000)


def get_frontend_url() -> str:
    """Get the frontend base URL used in email links."""
    return os.environ.get(
        "FRONTEND_URL", f"http://localhost:{get_api_port()}"
    ).rstrip("/")


def get_allowed_origins() -> list[str]:
    """
    Get list of allowed CORS origins.

    Includes localhost variants for dev and the production frontend URL.
    """
    ports = [3000, 5173, get_api_port()]
    hosts = ["localhost", "127.0.0.1"]
    origins = [f"http://{host}:{port}" for host in hosts for port in ports]

    frontend_url = get_frontend_url()
    if frontend_url not in origins:
        origins.append(frontend_url)

    return origins


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL", "redis://localhost:6379")


# --- Notification pipeline -------------------------------------------------


def get_processor_interval_seconds() -> int:
    """How often the due-notification sweep runs."""
    return _get_int("NOTIFICATION_PROCESSOR_INTERVAL_SECONDS", 60)


def get_processor_batch_size() -> int:
    """Maximum number of due rows handled per sweep."""
    return _get_int("NOTIFICATION_PROCESSOR_BATCH_SIZE", 100)


def get_channel_timeout_seconds() -> float:
    """Upper bound for a single channel delivery attempt."""
    return _get_float("NOTIFICATION_CHANNEL_TIMEOUT_SECONDS", 8.0)


def get_preference_cache_ttl_seconds() -> float:
    return _get_float("NOTIFICATION_PREFERENCE_CACHE_TTL_SECONDS", 300.0)


def workers_disabled() -> bool:
    """Skip the processor and subscriber (API-only process)."""
    return _get_bool("DISABLE_NOTIFICATION_WORKERS")


# --- Channel transports ----------------------------------------------------


def get_sendgrid_settings() -> dict:
    return {
        "api_key": os.environ.get("SENDGRID_API_KEY"),
        "from_email": os.environ.get("FROM_EMAIL", "notifications@talktime.org"),
        "from_name": os.environ.get("FROM_NAME", "TalkTime"),
    }


def get_twilio_settings() -> dict:
    return {
        "account_sid": os.environ.get("TWILIO_ACCOUNT_SID"),
        "auth_token": os.environ.get("TWILIO_AUTH_TOKEN"),
        "from_number": os.environ.get("TWILIO_FROM_NUMBER"),
    }


def get_vapid_settings() -> dict:
    return {
        "public_key": os.environ.get("VAPID_PUBLIC_KEY"),
        "private_key": os.environ.get("VAPID_PRIVATE_KEY"),
        "email": os.environ.get("VAPID_EMAIL", "admin@talktime.org"),
    }


# Required environment variables for production
# Format: (name, description, required_in_dev)
REQUIRED_ENV_VARS = [
    ("DATABASE_URL", "PostgreSQL connection string", True),
    ("JWT_SECRET", "Secret key for JWT tokens", True),
    ("REDIS_URL", "Redis URL for meeting events and realtime bus", False),
    ("SENDGRID_API_KEY", "SendGrid API key for email notifications", False),
    ("TWILIO_ACCOUNT_SID", "Twilio account SID for SMS notifications", False),
    ("TWILIO_AUTH_TOKEN", "Twilio auth token for SMS notifications", False),
    ("VAPID_PUBLIC_KEY", "VAPID public key for web push", False),
    ("VAPID_PRIVATE_KEY", "VAPID private key for web push", False),
]


def check_required_env_vars() -> tuple[bool, list[str]]:
    """
    Check that required environment variables are set.

    Returns:
        (all_ok, warnings): Tuple of success flag and list of warning messages
    """
    warnings = []
    errors = []
    in_dev = is_dev_mode()

    for name, description, required_in_dev in REQUIRED_ENV_VARS:
        value = os.environ.get(name)

        if not value:
            if is_production() and required_in_dev:
                errors.append(f"  ✗ {name}: Not set ({description})")
            elif required_in_dev or not in_dev:
                warnings.append(f"  ⚠ {name}: Not set ({description})")

    if errors:
        for error in errors:
            print(error)
        return False, warnings

    return True, warnings
