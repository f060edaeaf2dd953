# clip_sync/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Bosch camera cloud ────────────────────────────────────────────────
    BOSCH_API_URL: str = "https://residential.cbs.boschsecurity.com/v7"
    BOSCH_ACCESS_TOKEN: str = ""
    BOSCH_VERIFY_TLS: bool = False   # The cloud's certificate chain is not publicly verifiable

    # ── Google Drive ──────────────────────────────────────────────────────
    DRIVE_API_URL: str = "https://www.googleapis.com/drive/v3"
    DRIVE_UPLOAD_URL: str = "https://www.googleapis.com/upload/drive/v3"
    DRIVE_ACCESS_TOKEN: str = ""
    DRIVE_FOLDER_ID: Optional[str] = None   # Upload/list inside this folder only

    HTTP_TIMEOUT_SECONDS: float = 30.0

    # ── Sync policy ───────────────────────────────────────────────────────
    SYNC_ENABLED: bool = True
    MAX_PENDING_REQUESTS: int = 3        # Concurrent clip exports on the camera side
    MAX_FAVORITES: int = 25              # Favorite slots we are allowed to use
    MAX_NON_FAVORITES: int = 200         # Remote pool size before old events get evicted
    SAFETY_MARGIN_MB: int = 10           # Free space kept on the drive beyond each upload
    DELETE_EVENT_AFTER_ARCHIVE: bool = False

    # ── Timing (seconds) ──────────────────────────────────────────────────
    REQUEST_DELAY_SECONDS: float = 10
    IDLE_DELAY_SECONDS: float = 30
    ERROR_DELAY_SECONDS: float = 30
    EXPORT_POLL_SECONDS: float = 5
    QUOTA_POLL_SECONDS: float = 30
    STATE_REFRESH_IDLE_TICKS: int = 10   # Full drive re-listing every N idle ticks

    # ── Local storage ─────────────────────────────────────────────────────
    DOWNLOAD_DIR: str = "clips"
    AUDIT_DIR: str = "audit"

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
