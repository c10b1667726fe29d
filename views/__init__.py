from .channel_panel import ChannelPanel

__all__ = ["ChannelPanel"]
