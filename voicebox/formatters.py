"""Plain-text rendering of voice records and message splitting for Telegram."""

from .models import VoiceRecord

MAX_LENGTH = 4096


def format_numbered_list(voices: list[VoiceRecord], prompt: str) -> str:
    """1-based list used for edit/delete selection, followed by the prompt."""
    lines = [
        f"{i}. Name: {voice.name}\nDescription: {voice.description}\n"
        for i, voice in enumerate(voices, start=1)
    ]
    return "".join(lines) + f"\n{prompt}"


def format_voice_list(voices: list[VoiceRecord]) -> str:
    blocks = []
    for voice in voices:
        block = f"Name: {voice.name}\nDescription: {voice.description}"
        if voice.tags:
            block += f"\nTags: {', '.join(voice.tags)}"
        blocks.append(block)
    return "\n\n".join(blocks)


def format_for_telegram(text: str, max_length: int = MAX_LENGTH) -> list[str]:
    """Split a long reply into Telegram-safe chunks.

    Splits on paragraph boundaries (\\n\\n), then on line boundaries (\\n).
    Each chunk is <= max_length characters.
    """
    if not text or not text.strip():
        return []

    text = text.strip()

    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current = ""

    for para in text.split("\n\n"):
        if len(current) + len(para) + 2 <= max_length:
            current += ("\n\n" if current else "") + para
        else:
            if current:
                chunks.append(current)
            if len(para) > max_length:
                # Oversized paragraph: fall back to line boundaries
                current = ""
                for line in para.split("\n"):
                    if len(current) + len(line) + 1 <= max_length:
                        current += ("\n" if current else "") + line
                    else:
                        if current:
                            chunks.append(current)
                        # Oversized line: hard-split into max_length slices
                        while len(line) > max_length:
                            chunks.append(line[:max_length])
                            line = line[max_length:]
                        current = line
            else:
                current = para

    if current:
        chunks.append(current)

    return chunks
