"""Catch-all message handler: dialogue steps, voice uploads and menu buttons."""

import logging

from aiogram import Router
from aiogram.types import Message

from ..dialogue import Incoming
from ..dispatcher import CommandDispatcher
from .commands import send_reply

logger = logging.getLogger(__name__)
router = Router()


@router.message()
async def handle_message(message: Message, voice_dispatcher: CommandDispatcher):
    if not message.from_user:
        return
    reply = await voice_dispatcher.dispatch(Incoming.from_message(message))
    if reply is not None:
        await send_reply(message, reply)
