"""Voice bot configuration."""

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class VoiceBotConfig:
    bot_token: str = ""
    database_url: str = ""

    # Storage
    voices_dir: str = "voices"
    storage_path: str = os.path.join("data", "voices.json")  # used without a database

    log_level: str = "INFO"
    drop_pending_updates: bool = False

    @classmethod
    def from_env(cls) -> "VoiceBotConfig":
        return cls(
            bot_token=os.getenv("TELEGRAM_APITOKEN") or os.getenv("TELEGRAM_BOT_TOKEN", ""),
            database_url=os.getenv("CONNECTION_STRING") or os.getenv("DATABASE_URL", ""),
            voices_dir=os.getenv("VOICES_DIR", "voices"),
            storage_path=os.getenv("VOICES_STORAGE_PATH", os.path.join("data", "voices.json")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            drop_pending_updates=_env_flag("TG_DROP_PENDING_UPDATES"),
        )
