from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ArtifactRecord:
    """One persisted row per successful generation. Never updated."""
    id: str
    user_id: str
    prompt: str
    image_url: str
    file_path: str
    is_public: bool
    created_at: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ArtifactRecord":
        created_at = d.get("created_at")
        if isinstance(created_at, datetime):
            created_at = created_at.isoformat()
        return cls(
            id=str(d["id"]),
            user_id=str(d["user_id"]),
            prompt=d["prompt"],
            image_url=d["image_url"],
            file_path=d["file_path"],
            is_public=bool(d["is_public"]),
            created_at=created_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "prompt": self.prompt,
            "image_url": self.image_url,
            "file_path": self.file_path,
            "is_public": self.is_public,
            "created_at": self.created_at,
        }


class RecordStore(ABC):
    """Writes exactly one metadata row per call; raises PersistenceError on failure."""

    @abstractmethod
    def insert_record(
        self,
        user_id: str,
        prompt: str,
        image_url: str,
        file_path: str,
        is_public: bool,
    ) -> ArtifactRecord:
        pass
