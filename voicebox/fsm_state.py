"""
Per-user conversation state for the voice dialogue.

One ConversationState per Telegram user, created lazily and never removed:
finishing or cancelling a dialogue resets the entry to idle instead.
All access goes through a single lock held only for the dict operation.
"""

import threading
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Optional, Union


class Phase(str, Enum):
    IDLE = "idle"
    WAITING_FOR_VOICE = "waiting_for_voice"
    WAITING_FOR_NAME = "waiting_for_name"
    WAITING_FOR_DESCRIPTION = "waiting_for_description"
    WAITING_FOR_TAGS = "waiting_for_tags"
    WAITING_FOR_AUTHOR = "waiting_for_author"
    WAITING_FOR_EDIT_SELECTION = "waiting_for_edit_selection"
    EDITING_VOICE = "editing_voice"
    EDITING_VOICE_NAME = "editing_voice_name"
    EDITING_VOICE_DESCRIPTION = "editing_voice_description"
    WAITING_FOR_DELETE_SELECTION = "waiting_for_delete_selection"
    DELETING_VOICE = "deleting_voice"


@dataclass(frozen=True)
class PendingUpload:
    """Voice uploaded in the add flow, not saved yet."""
    file_id: str


@dataclass(frozen=True)
class SelectedRecord:
    """Persisted record picked in the edit or delete flow."""
    voice_id: int


Draft = Union[PendingUpload, SelectedRecord, None]


@dataclass
class ConversationState:
    phase: Phase = Phase.IDLE
    draft: Draft = None
    name: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    author: str = ""
    author_id: int = 0


_FIELD_NAMES = {f.name for f in fields(ConversationState)}


class StateStore:
    """Thread-safe user_id → ConversationState map."""

    def __init__(self):
        self._states: dict[int, ConversationState] = {}
        self._lock = threading.Lock()

    def get_state(self, user_id: int) -> ConversationState:
        """Return the user's state, creating an idle one on first access."""
        with self._lock:
            return self._get_or_create(user_id)

    def set_state(self, user_id: int, state: ConversationState) -> None:
        with self._lock:
            self._states[user_id] = state

    def get_phase(self, user_id: int) -> Phase:
        """Current phase, IDLE for unknown users. Does not create an entry."""
        with self._lock:
            state = self._states.get(user_id)
            return state.phase if state else Phase.IDLE

    def set_phase(self, user_id: int, phase: Phase) -> None:
        with self._lock:
            self._get_or_create(user_id).phase = phase

    def update(self, user_id: int, **changes) -> ConversationState:
        """Set several fields at once. Returns a snapshot of the new state."""
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise AttributeError(f"ConversationState has no field(s): {', '.join(sorted(unknown))}")
        with self._lock:
            state = self._get_or_create(user_id)
            for key, value in changes.items():
                setattr(state, key, value)
            return replace(state, tags=list(state.tags))

    def reset(self, user_id: int) -> None:
        """Drop any dialogue progress and go back to idle."""
        with self._lock:
            self._states[user_id] = ConversationState()

    def snapshot(self, user_id: int) -> Optional[ConversationState]:
        """Copy of the user's state, or None if never seen."""
        with self._lock:
            state = self._states.get(user_id)
            return replace(state, tags=list(state.tags)) if state else None

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._states

    def __len__(self) -> int:
        with self._lock:
            return len(self._states)

    def _get_or_create(self, user_id: int) -> ConversationState:
        state = self._states.get(user_id)
        if state is None:
            state = ConversationState()
            self._states[user_id] = state
        return state
