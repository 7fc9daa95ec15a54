import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings
from database import SongStore, connect
from routers import songs, stream
from storage import BlobStore, create_blob_store

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    logger.info("Starting up %s API", settings.app_name)
    client = None
    if app.state.song_store is None:
        client = connect(settings)
        app.state.song_store = SongStore.from_client(client, settings)
        app.state.song_store.init_db()
    if app.state.blob_store is None:
        app.state.blob_store = create_blob_store(settings)
    yield
    logger.info("Shutting down %s API", settings.app_name)
    if client is not None:
        client.close()


def create_app(
    settings: Settings | None = None,
    song_store: SongStore | None = None,
    blob_store: BlobStore | None = None,
) -> FastAPI:
    """Build the API. Collaborators not passed in are created from settings at startup."""
    settings = settings or load_settings()

    app = FastAPI(title=settings.app_name + " API", lifespan=lifespan)
    app.state.settings = settings
    app.state.song_store = song_store
    app.state.blob_store = blob_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Range"],
        expose_headers=["Accept-Ranges", "Content-Range", "Content-Length"],
    )

    app.include_router(songs.router)
    app.include_router(stream.router)

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
