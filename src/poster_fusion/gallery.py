from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from poster_fusion.imaging.raster import ImageObject


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SavedPoster:
    poster: ImageObject
    aspect_ratio: str
    sha256: str
    saved_at: str


class Gallery:
    """Ordered, in-memory collection of saved posters, unique by image bytes."""

    def __init__(self) -> None:
        self._entries: list[SavedPoster] = []
        self._hashes: set[str] = set()

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[SavedPoster]:
        return list(self._entries)

    def save(self, poster: ImageObject, aspect_ratio: str) -> bool:
        digest = poster.sha256
        if digest in self._hashes:
            return False
        self._entries.append(
            SavedPoster(poster=poster, aspect_ratio=aspect_ratio, sha256=digest, saved_at=_now_iso())
        )
        self._hashes.add(digest)
        return True

    def get(self, index: int) -> SavedPoster:
        if index < 0:
            raise IndexError(index)
        return self._entries[index]

    def clear(self) -> None:
        self._entries = []
        self._hashes = set()

    def describe(self) -> list[dict[str, Any]]:
        return [
            {
                "index": i,
                "aspect_ratio": e.aspect_ratio,
                "mime_type": e.poster.mime_type,
                "sha256": e.sha256,
                "saved_at": e.saved_at,
            }
            for i, e in enumerate(self.entries)
        ]
