# File: capture_sync/core/config/settings.py

import os
from pathlib import Path


class Settings:
    # --- Paths ---
    # capture_sync/core/config/settings.py -> capture_sync/core/config -> capture_sync/core -> capture_sync -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = Path(os.getenv("CAPTURE_SYNC_DATA_DIR", str(BASE_DIR / "data")))

    # --- Database (key-value store) ---
    @property
    def DATABASE_URL(self) -> str:
        # An explicit URL wins (e.g. Postgres); otherwise a local SQLite file.
        explicit = os.getenv("CAPTURE_SYNC_DATABASE_URL")
        if explicit:
            return explicit
        return f"sqlite:///{self.DATA_DIR / 'capture_sync.db'}"

    # --- Capture service (event source) ---
    CAPTURE_API_URL: str = os.getenv("CAPTURE_API_URL", "http://localhost:3030")
    EVENT_FETCH_LIMIT: int = int(os.getenv("EVENT_FETCH_LIMIT", "1000"))
    INITIAL_LOOKBACK_DAYS: int = int(os.getenv("INITIAL_LOOKBACK_DAYS", "7"))

    # --- Segmentation ---
    GAP_THRESHOLD_MINUTES: float = float(os.getenv("GAP_THRESHOLD_MINUTES", "5"))
    MIN_TRANSCRIPT_LENGTH: int = int(os.getenv("MIN_TRANSCRIPT_LENGTH", "200"))
    STORAGE_REMEDIATION_KEEP: int = int(os.getenv("STORAGE_REMEDIATION_KEEP", "10"))

    # --- Remote repository API ---
    GITHUB_API_URL: str = os.getenv("GITHUB_API_URL", "https://api.github.com")
    GITHUB_RAW_URL: str = os.getenv("GITHUB_RAW_URL", "https://raw.githubusercontent.com")
    GITHUB_TOKEN: str = os.getenv("GITHUB_TOKEN", "")
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "3600"))
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    DEFAULT_PIPE_URLS = [
        url.strip()
        for url in os.getenv(
            "DEFAULT_PIPE_URLS",
            "https://github.com/mediar-ai/screenpipe/tree/main/examples/typescript/pipe-stream-ocr-text",
        ).split(",")
        if url.strip()
    ]

    # --- Generative text (enrichment) ---
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    AI_URL: str = os.getenv("AI_URL", "https://api.openai.com/v1")
    AI_MODEL: str = os.getenv("AI_MODEL", "gpt-4o-mini")

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.DATA_DIR.mkdir(parents=True, exist_ok=True)


settings = Settings()
