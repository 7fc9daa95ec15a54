import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from database import SongStore
from deps import get_blob_store, get_song_store
from storage import BlobStore
from streaming import stream_blob

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/stream/{song_id}")
def stream_song(
    song_id: str,
    request: Request,
    songs: SongStore = Depends(get_song_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    """Serve a song's audio, honouring a single-range Range header for seeking."""
    try:
        song = songs.find_by_id(song_id)
    except PyMongoError as e:
        logger.error(f"Lookup error for song {song_id}: {e}", exc_info=True)
        return JSONResponse({"error": "Failed to fetch song", "details": str(e)}, status_code=500)
    if not song:
        raise HTTPException(404, "Song not found")

    range_header = request.headers.get("range")
    logger.info(f"Streaming song {song_id} range={range_header!r}")
    return stream_blob(blobs, song.location, range_header)
