"""Runtime settings for the digest batch dispatcher, read from the environment."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_BATCH_SIZE = 10
DEFAULT_SUMMARY_TIMEOUT = 15.0  # seconds per summarization call
DEFAULT_SEND_INTERVAL = 0.55  # seconds between send starts (Resend: 2 req/s)


class DispatchSettings(BaseModel):
    """Tunables for one invocation of the dispatcher."""

    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1)
    summary_timeout: float = Field(DEFAULT_SUMMARY_TIMEOUT, gt=0)
    send_interval: float = Field(DEFAULT_SEND_INTERVAL, ge=0)
    cron_secret: str | None = None
    trigger_url: str | None = None


def load_settings() -> DispatchSettings:
    """Build settings from environment variables, falling back to defaults."""
    values: dict[str, object] = {
        "cron_secret": os.getenv("CRON_SECRET") or None,
        "trigger_url": os.getenv("DIGEST_TRIGGER_URL") or None,
    }
    env_fields = {
        "batch_size": "DIGEST_BATCH_SIZE",
        "summary_timeout": "DIGEST_SUMMARY_TIMEOUT",
        "send_interval": "DIGEST_SEND_INTERVAL",
    }
    for field, env_name in env_fields.items():
        raw = os.getenv(env_name)
        if raw:
            values[field] = raw

    return DispatchSettings.model_validate(values)
