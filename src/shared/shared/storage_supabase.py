import re
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from supabase import Client

from .errors import StorageError
from .media import GeneratedArtifact
from .util import timestamp_slug, utc_now

LOG = logging.getLogger(__name__)


@dataclass
class StoredArtifact:
    bucket: str
    path: str
    public_url: str


def _sanitize_path_component(component: str) -> str:
    if not component:
        raise ValueError("Path component cannot be empty")

    if not re.fullmatch(r'[a-zA-Z0-9_\-]+', component):
        raise ValueError(f"Invalid path component: {component}")

    return component


def build_artifact_path(user_id: str, moment: Optional[datetime] = None) -> str:
    owner = _sanitize_path_component(user_id)
    stamp = timestamp_slug(moment or utc_now())
    return f"{owner}/{stamp}-generated.jpg"


class ArtifactStore:
    """Uploads generated images to Supabase Storage, one bucket per visibility."""

    def __init__(
        self,
        client: Client,
        public_bucket: str = "public-images",
        private_bucket: str = "private-images",
        cache_control: str = "3600",
    ):
        self.client = client
        self.public_bucket = public_bucket
        self.private_bucket = private_bucket
        self.cache_control = cache_control

    def bucket_for(self, is_public: bool) -> str:
        return self.public_bucket if is_public else self.private_bucket

    def upload(self, user_id: str, artifact: GeneratedArtifact, is_public: bool) -> StoredArtifact:
        """
        Upload file directly to Supabase Storage

        Args:
            user_id: Owner identity, first path segment
            artifact: Decoded image bytes
            is_public: Selects the public or private bucket

        Returns:
            StoredArtifact with the object's public URL
        """
        bucket = self.bucket_for(is_public)
        try:
            path = build_artifact_path(user_id)
        except ValueError as e:
            raise StorageError(str(e)) from e

        try:
            self.client.storage.from_(bucket).upload(
                path=path,
                file=artifact.data,
                file_options={
                    "content-type": artifact.content_type,
                    "cache-control": self.cache_control,
                    "upsert": "false",
                },
            )
        except Exception as e:
            LOG.error("Upload to %s/%s failed: %s", bucket, path, e)
            raise StorageError(f"Failed to upload image: {e}") from e

        LOG.info(f"Uploaded file to {bucket}/{path}")

        try:
            public_url = self.client.storage.from_(bucket).get_public_url(path)
        except Exception as e:
            raise StorageError(f"Failed to resolve image URL: {e}") from e

        return StoredArtifact(bucket=bucket, path=path, public_url=public_url)

    def delete(self, stored: StoredArtifact) -> None:
        """Delete an uploaded object; errors propagate to the caller."""
        self.client.storage.from_(stored.bucket).remove([stored.path])
        LOG.info(f"Deleted file from {stored.bucket}/{stored.path}")
