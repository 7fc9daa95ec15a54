"""Tests for SongStore against a mocked pymongo collection."""

from unittest.mock import MagicMock, Mock

from bson import ObjectId

from database import SongStore
from models import Song

OID = ObjectId("64b7f0c2a1b2c3d4e5f60718")


def _doc(**overrides):
    doc = {
        "_id": OID,
        "title": "Hello",
        "artist": "Adele",
        "duration": 295.0,
        "location": "1-hello.mp3",
        "content_type": "audio/mpeg",
        "created_at": "2026-01-01T00:00:00+00:00",
    }
    doc.update(overrides)
    return doc


def test_find_all_newest_first():
    collection = MagicMock()
    collection.find.return_value.sort.return_value = [_doc()]
    songs = SongStore(collection).find_all()
    assert [s.id for s in songs] == [str(OID)]
    collection.find.return_value.sort.assert_called_once_with("created_at", -1)


def test_find_by_id():
    collection = Mock()
    collection.find_one.return_value = _doc()
    song = SongStore(collection).find_by_id(str(OID))
    assert song.title == "Hello"
    assert song.location == "1-hello.mp3"
    collection.find_one.assert_called_once_with({"_id": OID})


def test_find_by_id_missing():
    collection = Mock()
    collection.find_one.return_value = None
    assert SongStore(collection).find_by_id(str(OID)) is None


def test_invalid_id_skips_query():
    collection = Mock()
    assert SongStore(collection).find_by_id("not-an-object-id") is None
    collection.find_one.assert_not_called()


def test_create_assigns_id_and_timestamp():
    collection = Mock()
    collection.insert_one.return_value = Mock(inserted_id=OID)
    created = SongStore(collection).create(
        Song(title="Hello", artist="Adele", duration=None, location="1-hello.mp3")
    )
    assert created.id == str(OID)
    assert created.created_at
    inserted = collection.insert_one.call_args[0][0]
    assert inserted["location"] == "1-hello.mp3"


def test_delete_returns_removed_record():
    collection = Mock()
    collection.find_one_and_delete.return_value = _doc()
    deleted = SongStore(collection).delete_by_id(str(OID))
    assert deleted.location == "1-hello.mp3"


def test_delete_missing():
    collection = Mock()
    collection.find_one_and_delete.return_value = None
    assert SongStore(collection).delete_by_id(str(OID)) is None


def test_delete_invalid_id():
    collection = Mock()
    assert SongStore(collection).delete_by_id("xyz") is None
    collection.find_one_and_delete.assert_not_called()
