from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from models.track import Track, CHANNEL_KINDS
from services.errors import CatalogError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {'.mp3', '.wav', '.ogg', '.m4a'}


def is_audio_file(filename: str) -> bool:
    """Check whether a filename is a visible, supported audio file."""
    if filename.startswith('.'):
        return False
    return Path(filename).suffix.lower() in SUPPORTED_EXTENSIONS


def scan_directory(directory: Path, kind: str) -> List[Track]:
    """Scan one kind directory for audio files.

    Args:
        directory: Directory holding the audio files for this kind.
        kind: Channel kind used to build each track's url.

    Returns:
        Tracks sorted by filename. Missing directories yield an empty list.
    """
    if not directory.exists():
        return []

    tracks = []
    for file_path in sorted(directory.iterdir(), key=lambda p: p.name.lower()):
        if not file_path.is_file() or not is_audio_file(file_path.name):
            continue
        tracks.append(Track.from_file(file_path, kind))

    return tracks


def build_manifest(audio_dir: Path) -> Dict[str, List[Dict[str, str]]]:
    """Scan every kind directory under audio_dir into a manifest document."""
    manifest = {}
    for kind in CHANNEL_KINDS:
        try:
            tracks = scan_directory(audio_dir / kind, kind)
        except OSError as e:
            logger.error(f"Error reading directory {audio_dir / kind}: {e}")
            tracks = []
        manifest[kind] = [track.to_dict() for track in tracks]
    return manifest


def parse_track_record(record: Any) -> Track:
    """Validate a catalog record and build a track from it.

    Accepts ``file_url`` as an alias for ``url``.

    Raises:
        CatalogError: If the record is not a mapping of non-empty string fields.
    """
    if not isinstance(record, dict):
        raise CatalogError(f"Track record must be an object, got {type(record).__name__}")

    fields = {
        'id': record.get('id'),
        'name': record.get('name'),
        'url': record.get('url', record.get('file_url')),
    }
    for key, value in fields.items():
        if not isinstance(value, str) or not value:
            raise CatalogError(f"Track record field '{key}' must be a non-empty string")

    return Track(**fields)


def parse_track_list(payload: Any, kind: str) -> List[Track]:
    """Validate a list of catalog records for one kind.

    Raises:
        CatalogError: If the payload is not an array of well-formed records
            or repeats an id.
    """
    if not isinstance(payload, list):
        raise CatalogError(f"Catalog entry '{kind}' must be an array")

    tracks = [parse_track_record(record) for record in payload]

    seen = set()
    for track in tracks:
        if track.id in seen:
            raise CatalogError(f"Duplicate track id '{track.id}' in '{kind}'")
        seen.add(track.id)

    return tracks


def _check_kind(kind: str) -> None:
    if kind not in CHANNEL_KINDS:
        raise CatalogError(f"Unknown catalog kind: {kind}")


class ManifestCatalog:
    """Catalog backed by a precomputed JSON manifest."""

    def __init__(self, manifest_path: Path):
        self.manifest_path = Path(manifest_path)
        self._document: Optional[Dict[str, Any]] = None
        self._read_lock = asyncio.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.manifest_path, encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Failed to read manifest {self.manifest_path}: {e}") from e

        if not isinstance(document, dict):
            raise CatalogError("Manifest must be a JSON object")
        return document

    async def list(self, kind: str) -> List[Track]:
        _check_kind(kind)
        async with self._read_lock:
            if self._document is None:
                self._document = await asyncio.to_thread(self._read)
        return parse_track_list(self._document.get(kind), kind)


class DirectoryCatalog:
    """Catalog that scans ``<audio_dir>/<kind>`` on demand."""

    def __init__(self, audio_dir: Path):
        self.audio_dir = Path(audio_dir)

    async def list(self, kind: str) -> List[Track]:
        _check_kind(kind)
        try:
            return await asyncio.to_thread(scan_directory, self.audio_dir / kind, kind)
        except OSError as e:
            raise CatalogError(f"Failed to scan {self.audio_dir / kind}: {e}") from e


class HttpCatalog:
    """Catalog read from the HTTP endpoint served by catalog_server."""

    ENDPOINT = "/api/audio"

    def __init__(self, base_url: str, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """Initialize the HTTP catalog client.

        Args:
            base_url: Server root, e.g. ``http://localhost:5000``.
            timeout: Optional request timeout in seconds. None waits indefinitely.
            session: Optional requests session to reuse.
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self._session = session or requests.Session()

    def _fetch(self, kind: str) -> Any:
        url = f"{self.base_url}{self.ENDPOINT}"
        try:
            response = self._session.get(url, params={'type': kind}, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise CatalogError(f"Failed to fetch {kind} catalog from {url}: {e}") from e
        except ValueError as e:
            raise CatalogError(f"Invalid JSON from {url}: {e}") from e

    async def list(self, kind: str) -> List[Track]:
        _check_kind(kind)
        payload = await asyncio.to_thread(self._fetch, kind)
        return parse_track_list(payload, kind)


def catalog_from_location(location: str):
    """Pick a catalog provider for a manifest path, directory or http(s) URL."""
    if location.startswith(('http://', 'https://')):
        return HttpCatalog(location)

    path = Path(location).expanduser()
    if path.is_dir():
        return DirectoryCatalog(path)
    return ManifestCatalog(path)
