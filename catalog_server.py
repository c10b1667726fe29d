"""
Catalog Server

Serves the track catalog and the audio files over HTTP.

Endpoints
---------
/api/audio?type=music|binaural   → JSON array of {id, name, url}
/audio/<kind>/<filename>         → the audio file itself
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from flask import Flask, abort, jsonify, request, send_from_directory

from models.track import CHANNEL_KINDS
from services.track_catalog import scan_directory

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_DIR = Path("public") / "audio"


def create_app(audio_dir: Path | None = None) -> Flask:
    """Build the catalog Flask app.

    Args:
        audio_dir: Root holding one sub-directory per channel kind.
    """
    app = Flask(__name__)
    app.config['AUDIO_DIR'] = Path(audio_dir or os.environ.get('MIXER_AUDIO_DIR', DEFAULT_AUDIO_DIR))

    @app.route('/api/audio')
    def list_audio():
        kind = request.args.get('type')
        if kind not in CHANNEL_KINDS:
            return jsonify({'error': 'Invalid type parameter'}), 400

        directory = app.config['AUDIO_DIR'] / kind
        try:
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created missing audio directory {directory}")
                return jsonify([])

            tracks = scan_directory(directory, kind)
        except OSError as e:
            logger.error(f"Error reading audio directory {directory}: {e}")
            return jsonify({'error': 'Failed to read audio files'}), 500

        return jsonify([track.to_dict() for track in tracks])

    @app.route('/audio/<kind>/<path:filename>')
    def audio_file(kind, filename):
        if kind not in CHANNEL_KINDS:
            abort(404)
        return send_from_directory(app.config['AUDIO_DIR'] / kind, filename)

    return app


def main():
    parser = argparse.ArgumentParser(description="Serve the meditation mixer track catalog")
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=int(os.environ.get('PORT', 5000)))
    parser.add_argument('--audio-dir', type=Path, default=None,
                        help="Directory containing music/ and binaural/ (default: public/audio)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    app = create_app(args.audio_dir)
    logger.info(f"Serving catalog from {app.config['AUDIO_DIR']}")
    app.run(host=args.host, port=args.port)


if __name__ == '__main__':
    main()
