"""Exceptions raised by voicebox collaborators (storage, media download)."""


class VoiceboxError(Exception):
    """Base class for voicebox failures."""


class RepositoryError(VoiceboxError):
    """Voice record could not be read or written."""


class DownloadError(VoiceboxError):
    """Voice file could not be fetched from Telegram."""
