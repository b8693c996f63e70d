'''
Database migration: create the generated_images table

Only needed for RECORDS_BACKEND=sqlalchemy. Run:
python scripts/create_generated_images_table.py
'''
from sqlalchemy import inspect

from shared.config import get_settings
from shared.db import Base, make_engine
from shared.models import GeneratedImage


def migrate():
    settings = get_settings()
    if not settings.DATABASE_URL:
        raise SystemExit('DATABASE_URL is not set')

    engine = make_engine(settings.DATABASE_URL)

    if inspect(engine).has_table(GeneratedImage.__tablename__):
        print('generated_images table already exists')
        return

    print('Creating generated_images table...')
    Base.metadata.create_all(engine, tables=[GeneratedImage.__table__])
    print('Migration completed successfully')


if __name__ == '__main__':
    migrate()
