"""
Unified record store selection: Supabase REST or direct SQLAlchemy
"""
import logging
from typing import Optional
from supabase import Client
from .config import Settings
from .records import RecordStore

LOG = logging.getLogger(__name__)


def get_record_store(settings: Settings, client: Optional[Client] = None) -> RecordStore:
    """Build the record store for the configured RECORDS_BACKEND"""
    backend = settings.RECORDS_BACKEND.lower()

    if backend == "sqlalchemy":
        if not settings.DATABASE_URL:
            raise RuntimeError("DATABASE_URL must be set for the sqlalchemy records backend")
        from .db import make_engine, make_session_factory
        from .db_sqlalchemy import SqlAlchemyRecordStore
        LOG.info("Using SQLAlchemy records backend")
        return SqlAlchemyRecordStore(make_session_factory(make_engine(settings.DATABASE_URL)))

    if backend != "supabase":
        raise ValueError(f"Unknown records backend: {settings.RECORDS_BACKEND}. Available: ['supabase', 'sqlalchemy']")

    if client is None:
        raise RuntimeError("Supabase client required for the supabase records backend")
    from .db_supabase import SupabaseRecordStore
    LOG.info("Using Supabase records backend")
    return SupabaseRecordStore(client, table=settings.RECORDS_TABLE)
