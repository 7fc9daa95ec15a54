import logging
from typing import BinaryIO, Iterator

from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from ranges import MalformedRange, RangeNotSatisfiable, parse_range
from storage import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
AUDIO_MEDIA_TYPE = "audio/mpeg"


def iter_chunks(reader: BinaryIO, length: int, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
    """Yield exactly `length` bytes from `reader`, closing it however iteration ends."""
    remaining = length
    try:
        while remaining > 0:
            chunk = reader.read(min(chunk_size, remaining))
            if not chunk:
                # Content-Length is already sent; abort rather than send a short body
                logger.error(f"Blob ended {remaining} bytes early, aborting stream")
                raise BlobStoreError(f"Blob ended {remaining} bytes before the advertised length")
            remaining -= len(chunk)
            yield chunk
    except GeneratorExit:
        logger.debug(f"Client disconnected with {remaining} bytes left to send")
        raise
    finally:
        reader.close()


def _read_failed(reference: str) -> JSONResponse:
    logger.error(f"Failed to read blob {reference!r}", exc_info=True)
    return JSONResponse({"error": "Failed to read song"}, status_code=500)


def stream_blob(blob_store: BlobStore, reference: str, range_header: str | None) -> Response:
    """
    Build the response for one song stream request.

    Every failure is detected before a status line is chosen, so a response is
    either an error or a stream whose cursor is already open.
    """
    try:
        size = blob_store.size(reference)
    except BlobStoreError:
        return _read_failed(reference)

    try:
        byte_range = parse_range(range_header, size)
    except RangeNotSatisfiable as e:
        logger.info(str(e))
        return PlainTextResponse(
            str(e),
            status_code=416,
            headers={"Content-Range": f"bytes */{size}", "Accept-Ranges": "bytes"},
        )
    except MalformedRange as e:
        logger.debug(f"{e}; serving full file")
        byte_range = None

    if byte_range is None:
        start, end, status_code = 0, size - 1, 200
        headers = {"Content-Length": str(size)}
    else:
        start, end, status_code = byte_range.start, byte_range.end, 206
        headers = {
            "Content-Range": byte_range.content_range,
            "Content-Length": str(byte_range.length),
        }
    headers["Accept-Ranges"] = "bytes"

    try:
        reader = blob_store.open_range(reference, start, end)
    except BlobStoreError:
        return _read_failed(reference)

    return StreamingResponse(
        iter_chunks(reader, end - start + 1),
        status_code=status_code,
        media_type=AUDIO_MEDIA_TYPE,
        headers=headers,
        # Closes the cursor even if the body iterator never started
        background=BackgroundTask(reader.close),
    )
