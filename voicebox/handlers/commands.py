"""Slash-command handlers (/start, /open, /close, /cancel)."""

import logging

from aiogram import F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from ..dialogue import Incoming, Reply
from ..dispatcher import CommandDispatcher
from ..formatters import format_for_telegram

logger = logging.getLogger(__name__)
router = Router()


async def send_reply(message: Message, reply: Reply):
    """Answer in the originating chat; the keyboard goes with the last chunk."""
    chunks = format_for_telegram(reply.text)
    for i, chunk in enumerate(chunks):
        markup = reply.reply_markup if i == len(chunks) - 1 else None
        try:
            await message.answer(chunk, reply_markup=markup)
        except TelegramAPIError as e:
            logger.error(f"Error sending message to chat {message.chat.id}: {e}")


async def _run_command(message: Message, voice_dispatcher: CommandDispatcher):
    if not message.from_user:
        return
    command = Incoming.from_message(message).command or ""
    await send_reply(message, voice_dispatcher.handle_command(message.from_user.id, command))


@router.message(CommandStart())
async def cmd_start(message: Message, voice_dispatcher: CommandDispatcher):
    await _run_command(message, voice_dispatcher)


@router.message(Command("open"))
async def cmd_open(message: Message, voice_dispatcher: CommandDispatcher):
    await _run_command(message, voice_dispatcher)


@router.message(Command("close"))
async def cmd_close(message: Message, voice_dispatcher: CommandDispatcher):
    await _run_command(message, voice_dispatcher)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, voice_dispatcher: CommandDispatcher):
    await _run_command(message, voice_dispatcher)


@router.message(F.text.startswith("/"))
async def cmd_unknown(message: Message, voice_dispatcher: CommandDispatcher):
    await _run_command(message, voice_dispatcher)
