"""Configuration constants, .env loading, and logging setup.

WHY: Centralizes every configurable value (which channel to watch, where
to publish, how to summarize, how often to poll) so operators can tune the
bot from a .env file without touching code.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values read with os.getenv and sensible defaults. Secrets are loaded through
functions that raise a clear ValueError when missing. load_settings()
snapshots everything the relay needs into a Settings dataclass.

RULES:
- Secrets (OpenAI key, Slack tokens) are never hardcoded or defaulted
- PUBLISH_MODE is one of "text", "video", "both"
- CAPTION_LANGUAGES is a comma-separated preference list, first wins
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (where the bot is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Source channel
# ---------------------------------------------------------------------------

YOUTUBE_CHANNEL_ID = os.getenv("YOUTUBE_CHANNEL_ID", "UCsBjURrPoezykLs9EqgamOA")
YOUTUBE_FEED_URL = os.getenv(
    "YOUTUBE_FEED_URL",
    "https://www.youtube.com/feeds/videos.xml?channel_id={channel_id}",
)

# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------

PUBLISH_MODES = ("text", "video", "both")

SLACK_CHANNEL_ID = os.getenv("SLACK_CHANNEL_ID", "")
PUBLISH_MODE = os.getenv("PUBLISH_MODE", "text").strip().lower()
CAPTION_LANGUAGES = os.getenv("CAPTION_LANGUAGES", "en")
MAX_VIDEO_HEIGHT = int(os.getenv("MAX_VIDEO_HEIGHT", "720"))

# ---------------------------------------------------------------------------
# Language model
# ---------------------------------------------------------------------------

OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
SUMMARIZE_DESCRIPTION = os.getenv("SUMMARIZE_DESCRIPTION", "true").lower() == "true"

# ---------------------------------------------------------------------------
# Runtime
# ---------------------------------------------------------------------------

POLL_INTERVAL_S = float(os.getenv("POLL_INTERVAL_S", str(60 * 60)))
DATABASE_PATH = os.getenv("DATABASE_PATH", "data/uploaded_videos.db")
LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_BACKUP_DAYS = 14


@dataclass
class Settings:
    """Snapshot of the settings the relay service reads on every poll."""

    channel_id: str = YOUTUBE_CHANNEL_ID
    feed_url: str = YOUTUBE_FEED_URL
    slack_channel_id: str = SLACK_CHANNEL_ID
    publish_mode: str = "text"
    caption_languages: list[str] = field(default_factory=lambda: ["en"])
    summarize_description: bool = SUMMARIZE_DESCRIPTION
    max_video_height: int = MAX_VIDEO_HEIGHT
    poll_interval_s: float = POLL_INTERVAL_S
    database_path: str = DATABASE_PATH


def parse_publish_mode(value: str) -> str:
    """Validate a publish mode string.

    RULES:
    - Case-insensitive, surrounding whitespace ignored
    - Raises ValueError for anything outside PUBLISH_MODES
    """
    mode = (value or "").strip().lower()
    if mode not in PUBLISH_MODES:
        raise ValueError(
            "Invalid PUBLISH_MODE '{}'. Expected one of: {}".format(value, ", ".join(PUBLISH_MODES))
        )
    return mode


def parse_languages(value: str) -> list[str]:
    """Split a comma-separated language list, dropping blanks."""
    languages = [lang.strip() for lang in (value or "").split(",") if lang.strip()]
    if not languages:
        raise ValueError("CAPTION_LANGUAGES must name at least one language code.")
    return languages


def load_settings() -> Settings:
    """Build a validated Settings snapshot from the environment constants."""
    return Settings(
        channel_id=YOUTUBE_CHANNEL_ID,
        feed_url=YOUTUBE_FEED_URL,
        slack_channel_id=SLACK_CHANNEL_ID,
        publish_mode=parse_publish_mode(PUBLISH_MODE),
        caption_languages=parse_languages(CAPTION_LANGUAGES),
        summarize_description=SUMMARIZE_DESCRIPTION,
        max_video_height=MAX_VIDEO_HEIGHT,
        poll_interval_s=POLL_INTERVAL_S,
        database_path=DATABASE_PATH,
    )


def load_openai_api_key() -> str:
    """Load the OpenAI API key from the environment.

    RULES:
    - Raises ValueError if the key is missing or empty
    - Never returns a default/placeholder value
    """
    key = os.getenv("OPENAI_API_KEY", "").strip()
    if not key:
        raise ValueError(
            "OpenAI API key not configured. "
            "Add OPENAI_API_KEY to the .env file, or set SUMMARIZE_DESCRIPTION=false."
        )
    return key


def load_slack_tokens(require_app_token: bool = True) -> tuple[str, str]:
    """Load the Slack bot and app tokens.

    The app token is only needed for Socket Mode (the command surface);
    one-shot publishing needs just the bot token.

    Returns:
        (bot_token, app_token) — app_token is "" when not required.
    """
    bot_token = os.getenv("SLACK_BOT_TOKEN", "").strip()
    app_token = os.getenv("SLACK_APP_TOKEN", "").strip()

    if not bot_token:
        raise ValueError("SLACK_BOT_TOKEN environment variable is required")
    if require_app_token and not app_token:
        raise ValueError("SLACK_APP_TOKEN environment variable is required")
    return bot_token, app_token


def configure_logging(log_dir: str | None = None, level: int = logging.INFO) -> None:
    """Send logs to the console and to a daily-rotated file.

    HOW: Console handler plus a TimedRotatingFileHandler that rolls at
    midnight and keeps LOG_BACKUP_DAYS files (logs/application.log.YYYY-MM-DD).
    """
    directory = Path(log_dir or LOG_DIR)
    directory.mkdir(parents=True, exist_ok=True)

    file_handler = TimedRotatingFileHandler(
        directory / "application.log",
        when="midnight",
        backupCount=LOG_BACKUP_DAYS,
        encoding="utf-8",
    )

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        handlers=[logging.StreamHandler(), file_handler],
    )
