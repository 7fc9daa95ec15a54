from fastapi import Request

from config import Settings
from database import SongStore
from storage import BlobStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_song_store(request: Request) -> SongStore:
    return request.app.state.song_store


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store
