"""Persisted voice record model."""

from pydantic import BaseModel, Field


class VoiceRecord(BaseModel):
    """One uploaded voice clip and its metadata."""

    id: int
    name: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    author: str = ""
    author_id: int
    voice_path: str = ""  # local path of the .ogg file
