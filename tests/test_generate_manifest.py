import json

from generate_manifest import main, write_manifest


def test_write_manifest(tmp_path):
    (tmp_path / "audio" / "music").mkdir(parents=True)
    (tmp_path / "audio" / "music" / "a.mp3").write_bytes(b"")
    (tmp_path / "audio" / "music" / ".hidden.mp3").write_bytes(b"")
    output = tmp_path / "public" / "audio-list.json"

    manifest = write_manifest(tmp_path / "audio", output)

    assert json.loads(output.read_text()) == manifest
    assert manifest == {
        "music": [{"id": "a.mp3", "name": "a", "url": "/audio/music/a.mp3"}],
        "binaural": [],
    }


def test_main_writes_output(tmp_path):
    (tmp_path / "binaural").mkdir()
    (tmp_path / "binaural" / "delta.wav").write_bytes(b"")
    output = tmp_path / "out.json"

    assert main(["--audio-dir", str(tmp_path), "--output", str(output)]) == 0

    document = json.loads(output.read_text())
    assert [r["id"] for r in document["binaural"]] == ["delta.wav"]
    assert document["music"] == []
