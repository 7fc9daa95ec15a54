"""Shared fixtures: an in-memory song store and a local blob store on tmp_path."""

import uuid
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models import Song
from storage import LocalBlobStore


class FakeSongStore:
    """In-memory stand-in for SongStore with the same four operations."""

    def __init__(self):
        self.songs: dict[str, Song] = {}

    def find_all(self) -> list[Song]:
        return list(self.songs.values())

    def find_by_id(self, song_id: str) -> Song | None:
        return self.songs.get(song_id)

    def create(self, song: Song) -> Song:
        created = replace(song, id=uuid.uuid4().hex[:24], created_at=song.created_at or "2026-01-01T00:00:00+00:00")
        self.songs[created.id] = created
        return created

    def delete_by_id(self, song_id: str) -> Song | None:
        return self.songs.pop(song_id, None)


@pytest.fixture
def media_dir(tmp_path):
    d = tmp_path / "media"
    d.mkdir()
    return d


@pytest.fixture
def song_store():
    return FakeSongStore()


@pytest.fixture
def blob_store(media_dir):
    return LocalBlobStore(media_dir)


@pytest.fixture
def settings(media_dir):
    return Settings(media_dir=str(media_dir), max_upload_bytes=1024 * 1024)


@pytest.fixture
def client(settings, song_store, blob_store, monkeypatch):
    monkeypatch.setattr("routers.songs.probe_duration", lambda data, suffix: None)
    app = create_app(settings=settings, song_store=song_store, blob_store=blob_store)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def source_bytes():
    return bytes(i % 251 for i in range(1000))


@pytest.fixture
def stored_song(song_store, media_dir, source_bytes):
    """A 1000-byte song already on disk with a matching record."""
    (media_dir / "1700000000000-track.mp3").write_bytes(source_bytes)
    return song_store.create(
        Song(title="Track", artist="Artist", duration=12.5, location="1700000000000-track.mp3")
    )
