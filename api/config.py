import os
from dataclasses import dataclass

from dotenv import load_dotenv

STORAGE_BACKENDS = ("local", "s3")
DEFAULT_MAX_UPLOAD_BYTES = 200 * 1024 * 1024  # 200MB


@dataclass(frozen=True)
class Settings:
    app_name: str = "Song Library"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "songs"
    mongo_collection: str = "songs"
    storage_backend: str = "local"
    media_dir: str = "/media"
    s3_bucket: str = ""
    s3_endpoint_url: str | None = None
    s3_access_key_id: str | None = None
    s3_secret_access_key: str | None = None
    s3_region: str = "auto"
    s3_public_url: str = ""
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    cors_origins: tuple[str, ...] = ("*",)
    port: int = 5000


def load_settings() -> Settings:
    """Build settings from the environment, reading a .env file if present."""
    load_dotenv()

    backend = os.environ.get("STORAGE_BACKEND", "local").strip().lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(f"STORAGE_BACKEND must be one of {STORAGE_BACKENDS}, got {backend!r}")

    bucket = os.environ.get("S3_BUCKET", "")
    if backend == "s3" and not bucket:
        raise ValueError("S3_BUCKET is required when STORAGE_BACKEND=s3")

    origins = os.environ.get("CORS_ORIGINS", "*")

    return Settings(
        app_name=os.environ.get("APP_NAME", "Song Library"),
        mongo_uri=os.environ.get("MONGO_URI", "mongodb://localhost:27017"),
        mongo_db=os.environ.get("MONGO_DB", "songs"),
        mongo_collection=os.environ.get("MONGO_COLLECTION", "songs"),
        storage_backend=backend,
        media_dir=os.environ.get("MEDIA_DIR", "/media"),
        s3_bucket=bucket,
        s3_endpoint_url=os.environ.get("S3_ENDPOINT_URL") or None,
        s3_access_key_id=os.environ.get("S3_ACCESS_KEY_ID") or None,
        s3_secret_access_key=os.environ.get("S3_SECRET_ACCESS_KEY") or None,
        s3_region=os.environ.get("S3_REGION", "auto"),
        s3_public_url=os.environ.get("S3_PUBLIC_URL", ""),
        max_upload_bytes=int(os.environ.get("MAX_UPLOAD_BYTES", str(DEFAULT_MAX_UPLOAD_BYTES))),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        port=int(os.environ.get("PORT", "5000")),
    )
