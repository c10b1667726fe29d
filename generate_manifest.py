"""Build-time script that writes the static track manifest.

Scans ``<audio-dir>/music`` and ``<audio-dir>/binaural`` and writes a JSON
document with one array per kind.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from models.track import MUSIC, BINAURAL
from services.track_catalog import build_manifest

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_DIR = Path("public") / "audio"
DEFAULT_OUTPUT = Path("public") / "audio-list.json"


def write_manifest(audio_dir: Path, output_path: Path) -> dict:
    """Scan audio_dir and write the manifest to output_path.

    Returns:
        The manifest document that was written.
    """
    manifest = build_manifest(audio_dir)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(manifest, f, indent=2)

    return manifest


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Generate the audio-list.json manifest")
    parser.add_argument('--audio-dir', type=Path, default=DEFAULT_AUDIO_DIR)
    parser.add_argument('--output', type=Path, default=DEFAULT_OUTPUT)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(levelname)s - %(message)s')

    try:
        manifest = write_manifest(args.audio_dir, args.output)
    except OSError as e:
        logger.error(f"Failed to write manifest {args.output}: {e}")
        return 1

    logger.info("Audio list generated successfully!")
    logger.info(f"Music tracks: {len(manifest[MUSIC])}")
    logger.info(f"Binaural tracks: {len(manifest[BINAURAL])}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
