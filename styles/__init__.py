"""Shared style constants for the mixer UI."""

COLORS = {
    "bass": "#cc5500",
    "primary": "#ff8c00",
    "highlight": "#ffb347",
    "background": "#1a1a1a",
    "surface": "#2d2d2d",
    "muted": "#888888",
    "dim": "#555555",
    "inactive": "#333333",
    "music": "#ffb347",
    "binaural": "#7fb3d5",
}

COLOR_BASS = COLORS["bass"]
COLOR_PRIMARY = COLORS["primary"]
COLOR_HIGHLIGHT = COLORS["highlight"]
COLOR_MUTED = COLORS["muted"]
COLOR_DIM = COLORS["dim"]
COLOR_INACTIVE = COLORS["inactive"]

CHANNEL_ACCENTS = {
    "music": COLORS["music"],
    "binaural": COLORS["binaural"],
}
