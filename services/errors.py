"""Errors surfaced by the mixer services."""


class MixerError(Exception):
    """Base class for user-visible mixer failures."""
    pass


class CatalogError(MixerError):
    """Raised when the track catalog cannot be fetched or is malformed."""
    pass


class SelectionError(MixerError):
    """Raised when an operation needs a track that is not selected."""
    pass


class PlaybackError(MixerError):
    """Raised when a media resource fails to start or decode."""
    pass
