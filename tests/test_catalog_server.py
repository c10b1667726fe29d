import pytest

from catalog_server import create_app


@pytest.fixture
def audio_dir(tmp_path):
    music = tmp_path / "music"
    music.mkdir()
    (music / "a.mp3").write_bytes(b"ID3")
    (music / "Rain Loop.ogg").write_bytes(b"OggS")
    (music / ".DS_Store").write_bytes(b"")
    (music / "cover.png").write_bytes(b"")
    return tmp_path


@pytest.fixture
def client(audio_dir):
    app = create_app(audio_dir)
    app.config['TESTING'] = True
    return app.test_client()


def test_list_music(client):
    response = client.get('/api/audio?type=music')

    assert response.status_code == 200
    assert response.get_json() == [
        {"id": "a.mp3", "name": "a", "url": "/audio/music/a.mp3"},
        {"id": "Rain Loop.ogg", "name": "Rain Loop", "url": "/audio/music/Rain%20Loop.ogg"},
    ]


@pytest.mark.parametrize("query", ["", "?type=", "?type=ambient", "?type=MUSIC"])
def test_invalid_type_is_400(client, query):
    response = client.get(f'/api/audio{query}')

    assert response.status_code == 400
    assert response.get_json() == {"error": "Invalid type parameter"}


def test_missing_directory_created_and_empty(client, audio_dir):
    response = client.get('/api/audio?type=binaural')

    assert response.status_code == 200
    assert response.get_json() == []
    assert (audio_dir / "binaural").is_dir()


def test_read_failure_is_500(client, monkeypatch):
    import catalog_server

    def broken_scan(directory, kind):
        raise PermissionError("denied")

    monkeypatch.setattr(catalog_server, "scan_directory", broken_scan)

    response = client.get('/api/audio?type=music')

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to read audio files"}


def test_serves_audio_file(client):
    response = client.get('/audio/music/Rain%20Loop.ogg')

    assert response.status_code == 200
    assert response.data == b"OggS"


def test_unknown_kind_file_is_404(client):
    assert client.get('/audio/other/a.mp3').status_code == 404
