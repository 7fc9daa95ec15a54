import logging
from datetime import datetime, timezone

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection

from config import Settings
from models import Song

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _object_id(song_id: str) -> ObjectId | None:
    try:
        return ObjectId(song_id)
    except (InvalidId, TypeError):
        logger.warning(f"Invalid song id: {song_id!r}")
        return None


def _doc_to_song(doc: dict) -> Song:
    return Song(
        id=str(doc["_id"]),
        title=doc.get("title", ""),
        artist=doc.get("artist", ""),
        duration=doc.get("duration"),
        location=doc.get("location", ""),
        content_type=doc.get("content_type", "audio/mpeg"),
        created_at=doc.get("created_at"),
    )


def connect(settings: Settings) -> MongoClient:
    """Create the process-wide Mongo client. Connection happens lazily on first use."""
    logger.info(f"Connecting to MongoDB database {settings.mongo_db!r}")
    return MongoClient(settings.mongo_uri)


class SongStore:
    """Song metadata records kept in a single Mongo collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    @classmethod
    def from_client(cls, client: MongoClient, settings: Settings) -> "SongStore":
        return cls(client[settings.mongo_db][settings.mongo_collection])

    def init_db(self):
        self.collection.create_index([("created_at", DESCENDING)])

    def find_all(self) -> list[Song]:
        cursor = self.collection.find({}).sort("created_at", DESCENDING)
        return [_doc_to_song(doc) for doc in cursor]

    def find_by_id(self, song_id: str) -> Song | None:
        oid = _object_id(song_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid})
        return _doc_to_song(doc) if doc else None

    def create(self, song: Song) -> Song:
        doc = {
            "title": song.title,
            "artist": song.artist,
            "duration": song.duration,
            "location": song.location,
            "content_type": song.content_type,
            "created_at": song.created_at or _now(),
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Song record created: {result.inserted_id}")
        return _doc_to_song(doc)

    def delete_by_id(self, song_id: str) -> Song | None:
        """Remove a record, returning it, or None if there was nothing to delete."""
        oid = _object_id(song_id)
        if oid is None:
            return None
        doc = self.collection.find_one_and_delete({"_id": oid})
        return _doc_to_song(doc) if doc else None
