from .errors import MixerError, CatalogError, SelectionError, PlaybackError
from .track_catalog import ManifestCatalog, DirectoryCatalog, HttpCatalog
from .media_resource import MediaResource, MediaListener, PygameResourceFactory, LocatorResolver
from .channel import Channel
from .player import DualChannelPlayer

__all__ = [
    'MixerError',
    'CatalogError',
    'SelectionError',
    'PlaybackError',
    'ManifestCatalog',
    'DirectoryCatalog',
    'HttpCatalog',
    'MediaResource',
    'MediaListener',
    'PygameResourceFactory',
    'LocatorResolver',
    'Channel',
    'DualChannelPlayer',
]
