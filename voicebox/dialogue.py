"""
Voice dialogue engine.

Takes the user's current phase plus an incoming message, advances the
conversation state and returns at most one reply. Storage and download
calls run outside the state lock; blocking repository calls go through
asyncio.to_thread.

Add flow:    voice → name → description → tags → author → saved
Edit flow:   number → name|description → new value → updated
Delete flow: number → Yes/No → deleted
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from aiogram.types import Message, ReplyKeyboardMarkup, ReplyKeyboardRemove

from .errors import DownloadError, RepositoryError
from .formatters import format_numbered_list, format_voice_list
from .fsm_state import ConversationState, PendingUpload, Phase, SelectedRecord, StateStore
from .keyboards import confirm_keyboard, edit_field_keyboard, main_menu_keyboard, remove_keyboard
from .models import VoiceRecord

logger = logging.getLogger(__name__)

# ── Reply texts ──────────────────────────────────────────────

MSG_SEND_VOICE = "Send a voice message:"
MSG_ASK_NAME = "Name:"
MSG_ASK_DESCRIPTION = "Description:"
MSG_ASK_TAGS = "Tags (comma-separated):"
MSG_ASK_AUTHOR = "Author:"
MSG_SAVED = "Voice saved successfully!"
MSG_DOWNLOAD_ERROR = "Error downloading your voice file. Please try again."
MSG_SAVE_ERROR = "Error saving your data. Please try again."

MSG_RETRIEVE_ERROR = "Error retrieving your recordings."
MSG_NO_RECORDINGS = "You have no recordings."
MSG_NO_RECORDINGS_EDIT = "You have no recordings to edit."
MSG_NO_RECORDINGS_DELETE = "You have no recordings to delete."
MSG_PROMPT_EDIT = "Enter the number of the recording you want to edit:"
MSG_PROMPT_DELETE = "Enter the number of the recording you want to delete:"
MSG_VALID_NUMBER = "Please enter a valid number."
MSG_INVALID_NUMBER = "Invalid number. Try again."

MSG_CHOOSE_FIELD = "Please select what you want to change (name/description)."
MSG_ASK_NEW_NAME = "Enter a new name:"
MSG_ASK_NEW_DESCRIPTION = "Enter a new description:"
MSG_NAME_UPDATED = "Name updated successfully!"
MSG_DESCRIPTION_UPDATED = "Description updated successfully!"
MSG_UPDATE_ERROR = "Error updating your recording."

MSG_DELETED = "Deletion successful"
MSG_DELETE_CANCELLED = "Deletion cancelled"
MSG_DELETE_ERROR = "Error deleting your recording."

MSG_UNKNOWN_STATE = "Unknown command or state."

TAG_SEPARATOR = ", "
CONFIRM_WORD = "Yes"

Markup = Union[ReplyKeyboardMarkup, ReplyKeyboardRemove, None]


@dataclass
class Incoming:
    """Transport-neutral view of an inbound chat message."""
    user_id: int
    chat_id: int
    text: str = ""
    voice_file_id: Optional[str] = None

    @classmethod
    def from_message(cls, message: Message) -> "Incoming":
        return cls(
            user_id=message.from_user.id,
            chat_id=message.chat.id,
            text=message.text or "",
            voice_file_id=message.voice.file_id if message.voice else None,
        )

    @property
    def command(self) -> Optional[str]:
        """'cancel' for '/cancel@SomeBot now', None for plain text."""
        if not self.text.startswith("/"):
            return None
        token = self.text.split(maxsplit=1)[0][1:]
        name = token.split("@", 1)[0].lower()
        return name or None


@dataclass
class Reply:
    text: str
    reply_markup: Markup = None


def parse_tags(text: str) -> list[str]:
    """'Dog, Loud' → ['dog', 'loud']."""
    return text.lower().split(TAG_SEPARATOR)


class VoiceDialogue:
    """Per-message state machine for adding, editing and deleting voices."""

    def __init__(self, store: StateStore, repository, downloader):
        self.store = store
        self.repository = repository
        self.downloader = downloader
        self._handlers: dict[Phase, Callable[[Incoming], Awaitable[Optional[Reply]]]] = {
            Phase.WAITING_FOR_VOICE: self._on_voice,
            Phase.WAITING_FOR_NAME: self._on_name,
            Phase.WAITING_FOR_DESCRIPTION: self._on_description,
            Phase.WAITING_FOR_TAGS: self._on_tags,
            Phase.WAITING_FOR_AUTHOR: self._on_author,
            Phase.WAITING_FOR_EDIT_SELECTION: self._on_edit_selection,
            Phase.EDITING_VOICE: self._on_edit_field_choice,
            Phase.EDITING_VOICE_NAME: self._on_new_name,
            Phase.EDITING_VOICE_DESCRIPTION: self._on_new_description,
            Phase.WAITING_FOR_DELETE_SELECTION: self._on_delete_selection,
            Phase.DELETING_VOICE: self._on_delete_confirm,
        }

    def handles(self, phase: Phase) -> bool:
        return phase in self._handlers

    async def step(self, incoming: Incoming, phase: Phase) -> Optional[Reply]:
        """Advance the user's dialogue from `phase`. None means no reply."""
        handler = self._handlers.get(phase)
        if handler is None:
            logger.warning(f"No dialogue handler for phase {phase!r} (user {incoming.user_id})")
            return Reply(MSG_UNKNOWN_STATE)
        logger.debug(f"User {incoming.user_id}: {phase.value}")
        return await handler(incoming)

    # ── Flow starters (idle menu) ────────────────────────────

    async def start_add(self, incoming: Incoming) -> Reply:
        self.store.set_state(incoming.user_id, ConversationState(phase=Phase.WAITING_FOR_VOICE))
        return Reply(MSG_SEND_VOICE, remove_keyboard())

    async def start_edit(self, incoming: Incoming) -> Reply:
        return await self._start_selection(
            incoming, Phase.WAITING_FOR_EDIT_SELECTION, MSG_NO_RECORDINGS_EDIT, MSG_PROMPT_EDIT,
        )

    async def start_delete(self, incoming: Incoming) -> Reply:
        return await self._start_selection(
            incoming, Phase.WAITING_FOR_DELETE_SELECTION, MSG_NO_RECORDINGS_DELETE, MSG_PROMPT_DELETE,
        )

    async def list_voices(self, incoming: Incoming) -> Reply:
        try:
            voices = await self._fetch_voices(incoming.user_id)
        except RepositoryError:
            logger.error(f"Error retrieving voices for user {incoming.user_id}", exc_info=True)
            return Reply(MSG_RETRIEVE_ERROR)
        if not voices:
            return Reply(MSG_NO_RECORDINGS)
        return Reply(format_voice_list(voices))

    async def _start_selection(
        self, incoming: Incoming, phase: Phase, empty_text: str, prompt: str,
    ) -> Reply:
        user_id = incoming.user_id
        try:
            voices = await self._fetch_voices(user_id)
        except RepositoryError:
            logger.error(f"Error retrieving voices for user {user_id}", exc_info=True)
            self.store.reset(user_id)
            return Reply(MSG_RETRIEVE_ERROR)
        if not voices:
            return Reply(empty_text)
        self.store.set_phase(user_id, phase)
        return Reply(format_numbered_list(voices, prompt), remove_keyboard())

    # ── Add flow ─────────────────────────────────────────────

    async def _on_voice(self, incoming: Incoming) -> Optional[Reply]:
        if not incoming.voice_file_id:
            return None
        self.store.update(
            incoming.user_id,
            draft=PendingUpload(incoming.voice_file_id),
            phase=Phase.WAITING_FOR_NAME,
        )
        return Reply(MSG_ASK_NAME)

    async def _on_name(self, incoming: Incoming) -> Reply:
        self.store.update(incoming.user_id, name=incoming.text, phase=Phase.WAITING_FOR_DESCRIPTION)
        return Reply(MSG_ASK_DESCRIPTION)

    async def _on_description(self, incoming: Incoming) -> Reply:
        self.store.update(incoming.user_id, description=incoming.text, phase=Phase.WAITING_FOR_TAGS)
        return Reply(MSG_ASK_TAGS)

    async def _on_tags(self, incoming: Incoming) -> Reply:
        self.store.update(incoming.user_id, tags=parse_tags(incoming.text), phase=Phase.WAITING_FOR_AUTHOR)
        return Reply(MSG_ASK_AUTHOR)

    async def _on_author(self, incoming: Incoming) -> Reply:
        user_id = incoming.user_id
        state = self.store.update(user_id, author=incoming.text, author_id=user_id)
        draft = state.draft

        if not isinstance(draft, PendingUpload):
            logger.error(f"User {user_id} reached author step without an uploaded voice")
            self.store.reset(user_id)
            return Reply(MSG_DOWNLOAD_ERROR, main_menu_keyboard())

        try:
            voice_path = await self.downloader.download(draft.file_id)
        except DownloadError:
            logger.error(f"Error downloading voice file for user {user_id}", exc_info=True)
            self.store.reset(user_id)
            return Reply(MSG_DOWNLOAD_ERROR, main_menu_keyboard())

        try:
            await asyncio.to_thread(
                self.repository.insert,
                voice_path,
                state.name,
                state.description,
                state.tags,
                state.author,
                state.author_id,
            )
        except RepositoryError:
            logger.error(f"Error saving voice for user {user_id}", exc_info=True)
            self.store.reset(user_id)
            return Reply(MSG_SAVE_ERROR, main_menu_keyboard())

        self.store.reset(user_id)
        return Reply(MSG_SAVED, main_menu_keyboard())

    # ── Edit flow ────────────────────────────────────────────

    async def _on_edit_selection(self, incoming: Incoming) -> Reply:
        voice, error = await self._resolve_selection(incoming)
        if error:
            return error
        self.store.update(
            incoming.user_id,
            draft=SelectedRecord(voice.id),
            phase=Phase.EDITING_VOICE,
        )
        return Reply(
            f"You are editing the recording: {voice.name}. "
            f"What would you like to change? (name/description)",
            edit_field_keyboard(),
        )

    async def _on_edit_field_choice(self, incoming: Incoming) -> Reply:
        choice = incoming.text.strip().lower()
        if choice == "name":
            self.store.set_phase(incoming.user_id, Phase.EDITING_VOICE_NAME)
            return Reply(MSG_ASK_NEW_NAME, remove_keyboard())
        if choice == "description":
            self.store.set_phase(incoming.user_id, Phase.EDITING_VOICE_DESCRIPTION)
            return Reply(MSG_ASK_NEW_DESCRIPTION, remove_keyboard())
        return Reply(MSG_CHOOSE_FIELD, edit_field_keyboard())

    async def _on_new_name(self, incoming: Incoming) -> Reply:
        return await self._update_selected(incoming, "name", MSG_NAME_UPDATED)

    async def _on_new_description(self, incoming: Incoming) -> Reply:
        return await self._update_selected(incoming, "description", MSG_DESCRIPTION_UPDATED)

    async def _update_selected(self, incoming: Incoming, field_name: str, done_text: str) -> Reply:
        user_id = incoming.user_id
        selected = self._selected_record(user_id)
        if selected is None:
            return Reply(MSG_UNKNOWN_STATE, main_menu_keyboard())
        try:
            await asyncio.to_thread(self.repository.update_field, selected.voice_id, field_name, incoming.text)
        except RepositoryError:
            logger.error(f"Error updating {field_name} of voice {selected.voice_id}", exc_info=True)
            self.store.reset(user_id)
            return Reply(MSG_UPDATE_ERROR, main_menu_keyboard())
        logger.info(f"Voice {selected.voice_id}: {field_name} updated by user {user_id}")
        self.store.reset(user_id)
        return Reply(done_text, main_menu_keyboard())

    # ── Delete flow ──────────────────────────────────────────

    async def _on_delete_selection(self, incoming: Incoming) -> Reply:
        voice, error = await self._resolve_selection(incoming)
        if error:
            return error
        self.store.update(
            incoming.user_id,
            draft=SelectedRecord(voice.id),
            phase=Phase.DELETING_VOICE,
        )
        return Reply(
            f"You are deleting the recording: {voice.name}. Do you want to continue? Yes/No",
            confirm_keyboard(),
        )

    async def _on_delete_confirm(self, incoming: Incoming) -> Reply:
        user_id = incoming.user_id
        selected = self._selected_record(user_id)
        if selected is None:
            return Reply(MSG_UNKNOWN_STATE, main_menu_keyboard())
        self.store.reset(user_id)

        if incoming.text != CONFIRM_WORD:
            return Reply(MSG_DELETE_CANCELLED, main_menu_keyboard())

        try:
            await asyncio.to_thread(self.repository.delete, selected.voice_id)
        except RepositoryError:
            logger.error(f"Error deleting voice {selected.voice_id}", exc_info=True)
            return Reply(MSG_DELETE_ERROR, main_menu_keyboard())
        logger.info(f"Voice {selected.voice_id} deleted by user {user_id}")
        return Reply(MSG_DELETED, main_menu_keyboard())

    # ── Helpers ──────────────────────────────────────────────

    async def _fetch_voices(self, user_id: int) -> list[VoiceRecord]:
        return await asyncio.to_thread(self.repository.list_by_author, user_id)

    async def _resolve_selection(self, incoming: Incoming):
        """Map a 1-based number onto a fresh fetch of the user's voices.

        Returns (voice, None) on success or (None, reply) when the input is rejected.
        The list is re-read here, so it may differ from the one shown earlier.
        """
        try:
            index = int(incoming.text)
        except ValueError:
            return None, Reply(MSG_VALID_NUMBER)
        if index <= 0:
            return None, Reply(MSG_VALID_NUMBER)

        try:
            voices = await self._fetch_voices(incoming.user_id)
        except RepositoryError:
            logger.error(f"Error retrieving voices for user {incoming.user_id}", exc_info=True)
            self.store.reset(incoming.user_id)
            return None, Reply(MSG_RETRIEVE_ERROR, main_menu_keyboard())

        if index > len(voices):
            return None, Reply(MSG_INVALID_NUMBER)
        return voices[index - 1], None

    def _selected_record(self, user_id: int) -> Optional[SelectedRecord]:
        state = self.store.snapshot(user_id)
        draft = state.draft if state else None
        if isinstance(draft, SelectedRecord):
            return draft
        logger.error(f"User {user_id} has no selected recording in phase "
                     f"{state.phase.value if state else Phase.IDLE.value}")
        self.store.reset(user_id)
        return None
