"""Download voice messages from Telegram to local disk."""

import logging
import os

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError

from .errors import DownloadError

logger = logging.getLogger(__name__)

VOICE_EXTENSION = ".ogg"


class VoiceDownloader:
    """Saves Telegram voice files as <voices_dir>/<file_id>.ogg."""

    def __init__(self, bot: Bot, voices_dir: str = "voices"):
        self.bot = bot
        self.voices_dir = voices_dir

    async def download(self, file_id: str) -> str:
        """Fetch the file behind a Telegram file_id. Returns the local path."""
        try:
            file = await self.bot.get_file(file_id)
            os.makedirs(self.voices_dir, exist_ok=True)
            path = os.path.join(self.voices_dir, f"{file.file_id}{VOICE_EXTENSION}")
            await self.bot.download_file(file.file_path, path)
        except (TelegramAPIError, OSError) as e:
            raise DownloadError(f"Cannot download voice {file_id}: {e}") from e
        logger.info(f"Voice downloaded: {path}")
        return path
