"""
Direct PostgreSQL record store using SQLAlchemy.
Alternative to db_supabase.py when the service talks to Postgres directly.
"""
from typing import Dict, Any
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from .errors import PersistenceError
from .models import GeneratedImage
from .records import ArtifactRecord, RecordStore
import logging

log = logging.getLogger("prism")


def _to_dict(image: GeneratedImage) -> Dict[str, Any]:
    return {
        "id": image.id,
        "user_id": image.user_id,
        "prompt": image.prompt,
        "image_url": image.image_url,
        "file_path": image.file_path,
        "is_public": image.is_public,
        "created_at": image.created_at.isoformat() if image.created_at else None,
    }


class SqlAlchemyRecordStore(RecordStore):

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def insert_record(
        self,
        user_id: str,
        prompt: str,
        image_url: str,
        file_path: str,
        is_public: bool,
    ) -> ArtifactRecord:
        try:
            with self.session_factory() as session:
                image = GeneratedImage(
                    user_id=user_id,
                    prompt=prompt,
                    image_url=image_url,
                    file_path=file_path,
                    is_public=is_public,
                )
                session.add(image)
                session.commit()
                session.refresh(image)
                record = ArtifactRecord.from_dict(_to_dict(image))
        except SQLAlchemyError as e:
            log.error("Insert into generated_images failed: %s", e)
            raise PersistenceError(f"Failed to save image record: {e}") from e

        log.info("Saved image record %s for user %s", record.id, user_id)
        return record

    def get_record(self, record_id: str) -> ArtifactRecord | None:
        with self.session_factory() as session:
            image = session.get(GeneratedImage, record_id)
            return ArtifactRecord.from_dict(_to_dict(image)) if image else None
