"""Telegram bot entry point — voice recording catalogue."""

import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.types import BotCommand

from .config import VoiceBotConfig
from .dialogue import VoiceDialogue
from .dispatcher import BOT_COMMANDS, CommandDispatcher
from .fsm_state import StateStore
from .handlers import commands, messages
from .media import VoiceDownloader
from .voice_storage import create_repository

logger = logging.getLogger(__name__)


def _detach_router(router):
    """Detach a router from its parent so it can be re-included."""
    parent = router.parent_router
    if parent is None:
        return
    try:
        parent.sub_routers.remove(router)
    except ValueError:
        pass
    # The public setter refuses None, so reset the backing attribute
    router._parent_router = None


def build_dispatcher(bot: Bot, config: VoiceBotConfig) -> Dispatcher:
    """Wire state store, storage and downloader into an aiogram Dispatcher."""
    store = StateStore()
    repository = create_repository(config.database_url, config.storage_path)
    dialogue = VoiceDialogue(store, repository, VoiceDownloader(bot, config.voices_dir))

    # Handlers receive it as the `voice_dispatcher` argument
    dp = Dispatcher(voice_dispatcher=CommandDispatcher(store, dialogue))

    # Detach routers from any previous dispatcher (needed for retry)
    _detach_router(commands.router)
    _detach_router(messages.router)

    # Order matters: commands first, catch-all last
    dp.include_router(commands.router)
    dp.include_router(messages.router)
    return dp


async def main():
    config = VoiceBotConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    logger.info(f"Config: token={'set' if config.bot_token else 'EMPTY'}, "
                f"database={'set' if config.database_url else 'EMPTY'}, voices_dir={config.voices_dir}")
    if not config.bot_token:
        logger.error("TELEGRAM_APITOKEN not set — bot not starting")
        return

    bot = Bot(
        token=config.bot_token,
        default=DefaultBotProperties(parse_mode=None),
    )
    dp = build_dispatcher(bot, config)

    try:
        await bot.set_my_commands(
            [BotCommand(command=name, description=desc) for name, desc in BOT_COMMANDS]
        )
    except Exception as e:
        logger.warning(f"set_my_commands failed: {e}")

    # Force-disconnect any previous webhook/polling session
    try:
        await bot.delete_webhook(drop_pending_updates=config.drop_pending_updates)
    except Exception as e:
        logger.warning(f"delete_webhook failed: {e}")

    me = await bot.get_me()
    logger.info(f"Authorized on account {me.username}")

    await dp.start_polling(bot, drop_pending_updates=config.drop_pending_updates)


if __name__ == "__main__":
    asyncio.run(main())
