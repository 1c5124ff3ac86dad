import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # --- Database ---
    DATABASE_URL = os.environ.get("DATABASE_URL")
    DATABASE_PUBLIC_URL = os.environ.get("DATABASE_PUBLIC_URL")

    # --- Redis ---
    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

    # --- Telnyx (SMS delivery of fired notifications) ---
    TELNYX_API_KEY = os.environ.get("TELNYX_API_KEY")
    TELNYX_FROM_NUMBER = os.environ.get("TELNYX_FROM_NUMBER")

    # --- Deep links ---
    DEEP_LINK_SCHEME = os.environ.get("DEEP_LINK_SCHEME", "clarity")

    # --- Notifications ---
    NOTIFICATION_FALLBACK_TITLE = os.environ.get("NOTIFICATION_FALLBACK_TITLE", "Reminder")
    # "memory" keeps scheduled notifications in-process, "database" persists them
    NOTIFICATION_GATEWAY = os.environ.get(
        "NOTIFICATION_GATEWAY", "database" if DATABASE_URL else "memory"
    )
    NOTIFICATIONS_ENABLED = _env_flag("NOTIFICATIONS_ENABLED", "true")
    NOTIFICATION_RECIPIENT = os.environ.get("NOTIFICATION_RECIPIENT")

    # --- Delivery worker ---
    DISPATCH_BATCH_SIZE = int(os.environ.get("DISPATCH_BATCH_SIZE", "100"))
    DISPATCH_INTERVAL_SECONDS = float(os.environ.get("DISPATCH_INTERVAL_SECONDS", "60"))

    # --- Logging ---
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

settings = Settings()
