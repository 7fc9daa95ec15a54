import logging
import os
import time

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool

from audio import probe_duration
from config import Settings
from database import SongStore
from deps import get_blob_store, get_settings, get_song_store
from models import Song
from storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)
router = APIRouter()

ALLOWED_EXTENSIONS = {".mp3", ".wav", ".flac", ".m4a", ".ogg", ".opus"}
READ_CHUNK = 65536


class SongOut(BaseModel):
    id: str
    title: str
    artist: str
    duration: float | None = None
    location: str
    content_type: str
    created_at: str | None = None


def _blob_name(filename: str) -> str:
    return f"{int(time.time() * 1000)}-{os.path.basename(filename)}"


@router.get("/songs", response_model=list[SongOut])
def list_songs(songs: SongStore = Depends(get_song_store)):
    try:
        return [s.to_dict() for s in songs.find_all()]
    except PyMongoError as e:
        logger.error(f"Fetch error: {e}", exc_info=True)
        return JSONResponse({"error": "Failed to fetch songs"}, status_code=500)


@router.get("/songs/{song_id}", response_model=SongOut)
def get_song(song_id: str, songs: SongStore = Depends(get_song_store)):
    try:
        song = songs.find_by_id(song_id)
    except PyMongoError as e:
        logger.error(f"Lookup error for song {song_id}: {e}", exc_info=True)
        return JSONResponse({"error": "Failed to fetch song", "details": str(e)}, status_code=500)
    if not song:
        raise HTTPException(404, "Song not found")
    return song.to_dict()


@router.post("/songs", response_model=SongOut)
async def upload_song(
    song: UploadFile = File(None),
    title: str | None = Form(None),
    artist: str | None = Form(None),
    duration: float | None = Form(None),
    songs: SongStore = Depends(get_song_store),
    blobs: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    if song is None or not song.filename:
        raise HTTPException(400, "No file uploaded")

    ext = os.path.splitext(song.filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(400, f"Unsupported file type: {ext}")

    data = bytearray()
    while chunk := await song.read(READ_CHUNK):
        data.extend(chunk)
        if len(data) > settings.max_upload_bytes:
            raise HTTPException(413, f"File too large (max {settings.max_upload_bytes // (1024 * 1024)}MB)")

    payload = bytes(data)
    name = _blob_name(song.filename)
    content_type = song.content_type or "audio/mpeg"

    # Blob first: a record must never point at a blob that was not written
    try:
        location = await run_in_threadpool(blobs.upload, name, payload, content_type)
    except BlobStoreError as e:
        logger.error(f"Blob upload error for {name}: {e}", exc_info=True)
        return JSONResponse({"error": "Blob upload failed", "details": str(e)}, status_code=500)

    logger.info(f"Uploaded {name} -> {location}")

    if duration is None:
        duration = await run_in_threadpool(probe_duration, payload, ext)

    record = Song(
        title=(title or os.path.splitext(song.filename)[0])[:200],
        artist=(artist or "Unknown Artist")[:200],
        duration=duration,
        location=location,
        content_type=content_type,
    )
    try:
        created = await run_in_threadpool(songs.create, record)
    except PyMongoError as e:
        logger.error(f"Saving metadata for {location} failed, blob left orphaned: {e}", exc_info=True)
        return JSONResponse({"error": "Upload failed", "details": str(e)}, status_code=500)

    logger.info(f"Song saved: id={created.id} title={created.title!r}")
    return created.to_dict()


@router.delete("/songs/{song_id}")
def delete_song(
    song_id: str,
    songs: SongStore = Depends(get_song_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    """Remove a song record, then its blob. The two steps are not atomic."""
    try:
        song = songs.delete_by_id(song_id)
    except PyMongoError as e:
        logger.error(f"Delete error for song {song_id}: {e}", exc_info=True)
        return JSONResponse({"error": "Delete failed", "details": str(e)}, status_code=500)
    if not song:
        raise HTTPException(404, "Song not found")

    try:
        blobs.delete(song.location)
    except BlobStoreError as e:
        logger.error(f"Blob delete error for {song.location}: {e}", exc_info=True)
        return JSONResponse({"error": "Blob delete failed", "details": str(e)}, status_code=500)

    logger.info(f"Deleted song: {song_id}")
    return {"message": "Song deleted successfully"}
