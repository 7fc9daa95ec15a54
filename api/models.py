from dataclasses import dataclass
from typing import Optional


@dataclass
class Song:
    title: str
    artist: str
    duration: Optional[float]
    location: str  # path relative to MEDIA_DIR, or absolute URL for bucket storage
    content_type: str = "audio/mpeg"
    created_at: Optional[str] = None
    id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "duration": self.duration,
            "location": self.location,
            "content_type": self.content_type,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte interval [start, end] over a blob of `size` bytes."""

    start: int
    end: int
    size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.size}"
