"""Shared fakes for the voice dialogue tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from voicebox.dialogue import VoiceDialogue
from voicebox.dispatcher import CommandDispatcher
from voicebox.errors import RepositoryError
from voicebox.fsm_state import StateStore
from voicebox.models import VoiceRecord


class FakeRepository:
    """In-memory stand-in for the voice repository."""

    def __init__(self):
        self.records: list[VoiceRecord] = []
        self.fail = False
        self.list_calls = 0

    def add(self, author_id: int, name: str, description: str = "") -> VoiceRecord:
        voice_id = max((r.id for r in self.records), default=0) + 1
        record = VoiceRecord(
            id=voice_id, name=name, description=description,
            author_id=author_id, voice_path=f"voices/{voice_id}.ogg",
        )
        self.records.append(record)
        return record

    def _check(self):
        if self.fail:
            raise RepositoryError("database is down")

    def list_by_author(self, author_id: int) -> list[VoiceRecord]:
        self._check()
        self.list_calls += 1
        return [r for r in self.records if r.author_id == author_id]

    def insert(self, voice_path, name, description, tags, author, author_id) -> int:
        self._check()
        voice_id = max((r.id for r in self.records), default=0) + 1
        self.records.append(VoiceRecord(
            id=voice_id, voice_path=voice_path, name=name, description=description,
            tags=list(tags), author=author, author_id=author_id,
        ))
        return voice_id

    def update_field(self, voice_id: int, field_name: str, value: str) -> None:
        self._check()
        for r in self.records:
            if r.id == voice_id:
                setattr(r, field_name, value)

    def delete(self, voice_id: int) -> None:
        self._check()
        self.records = [r for r in self.records if r.id != voice_id]

    def by_id(self, voice_id: int):
        return next((r for r in self.records if r.id == voice_id), None)


@pytest.fixture
def store():
    return StateStore()


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def downloader():
    fake = MagicMock()
    fake.download = AsyncMock(side_effect=lambda file_id: f"voices/{file_id}.ogg")
    return fake


@pytest.fixture
def dialogue(store, repository, downloader):
    return VoiceDialogue(store, repository, downloader)


@pytest.fixture
def voice_dispatcher(store, dialogue):
    return CommandDispatcher(store, dialogue)
