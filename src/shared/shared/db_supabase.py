"""
Supabase client and the REST-backed record store.
Uses the Supabase REST API instead of a direct PostgreSQL connection.
"""
from typing import Optional, Dict, Any
from supabase import create_client, Client
from .config import Settings
from .errors import PersistenceError
from .records import ArtifactRecord, RecordStore
import logging

log = logging.getLogger("prism")

_supabase_client: Optional[Client] = None


def get_supabase_client(settings: Settings) -> Client:
    """Get or create the process-wide privileged Supabase client."""
    global _supabase_client

    if _supabase_client is None:
        if not settings.supabase_configured():
            raise RuntimeError("Supabase credentials not configured")

        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_ROLE_KEY
        )
        log.info("Supabase client initialized")

    return _supabase_client


class SupabaseRecordStore(RecordStore):
    """Inserts generation records through the Supabase table API."""

    def __init__(self, client: Client, table: str = "generated_images"):
        self.client = client
        self.table = table

    def insert_record(
        self,
        user_id: str,
        prompt: str,
        image_url: str,
        file_path: str,
        is_public: bool,
    ) -> ArtifactRecord:
        row: Dict[str, Any] = {
            "user_id": user_id,
            "prompt": prompt,
            "image_url": image_url,
            "file_path": file_path,
            "is_public": is_public,
        }
        try:
            result = self.client.table(self.table).insert(row).execute()
        except Exception as e:
            log.error("Insert into %s failed: %s", self.table, e)
            raise PersistenceError(f"Failed to save image record: {e}") from e

        if not result.data:
            raise PersistenceError("Failed to save image record: no row returned")

        try:
            record = ArtifactRecord.from_dict(result.data[0])
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save image record: unexpected row {e!r}") from e

        log.info("Saved image record %s for user %s", record.id, user_id)
        return record
