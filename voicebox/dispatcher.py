"""Routes inbound messages: slash-commands, active dialogues, idle menu."""

import logging
from typing import Optional

from .dialogue import Incoming, Reply, VoiceDialogue
from .fsm_state import Phase, StateStore
from .keyboards import MENU_ADD, MENU_DELETE, MENU_EDIT, MENU_LIST, main_menu_keyboard, remove_keyboard

logger = logging.getLogger(__name__)

MSG_KEYBOARD_OPEN = "Keyboard is open"
MSG_KEYBOARD_CLOSED = "Keyboard is closed"
MSG_CANCELLED = "Action cancelled"
MSG_UNKNOWN_COMMAND = "I don't know that command"

# (command, description) pairs registered with Telegram at startup
BOT_COMMANDS = [
    ("start", "Start the bot"),
    ("open", "Open the keyboard"),
    ("close", "Close the keyboard"),
    ("cancel", "Cancel current action"),
]


class CommandDispatcher:
    """Decides who handles a message: command handler, dialogue engine or menu."""

    def __init__(self, store: StateStore, dialogue: VoiceDialogue):
        self.store = store
        self.dialogue = dialogue
        self._menu = {
            MENU_ADD: dialogue.start_add,
            MENU_EDIT: dialogue.start_edit,
            MENU_DELETE: dialogue.start_delete,
            MENU_LIST: dialogue.list_voices,
        }

    async def dispatch(self, incoming: Incoming) -> Optional[Reply]:
        command = incoming.command
        if command is not None:
            return self.handle_command(incoming.user_id, command)

        phase = self.store.get_phase(incoming.user_id)
        if phase is not Phase.IDLE:
            return await self.dialogue.step(incoming, phase)

        starter = self._menu.get(incoming.text)
        if starter is None:
            return None
        logger.debug(f"User {incoming.user_id}: menu '{incoming.text}'")
        return await starter(incoming)

    def handle_command(self, user_id: int, command: str) -> Reply:
        if command in ("start", "open"):
            return Reply(MSG_KEYBOARD_OPEN, main_menu_keyboard())
        if command == "close":
            return Reply(MSG_KEYBOARD_CLOSED, remove_keyboard())
        if command == "cancel":
            self.store.set_phase(user_id, Phase.IDLE)
            logger.debug(f"User {user_id}: dialogue cancelled")
            return Reply(MSG_CANCELLED, main_menu_keyboard())
        return Reply(MSG_UNKNOWN_COMMAND, main_menu_keyboard())
