"""
Seed script: create the pile status table and load the sample records.

Usage:
    python -m tos.scripts.seed [--database-url URL]

Does nothing to a table that already holds records.
"""
import argparse
import logging

from sqlalchemy import func
from sqlmodel import Session, select

from tos.db.engine import build_engine, init_store
from tos.db.sample_data import sample_records
from tos.models.record import TosRecord

logger = logging.getLogger(__name__)


def seed_database(engine) -> int:
    """Create tables and insert sample records if the table is empty.

    Returns:
        Number of records inserted (0 if the table already had data).
    """
    init_store(engine)
    with Session(engine) as s:
        existing = s.exec(select(func.count()).select_from(TosRecord)).one()
        if existing:
            logger.info("tos_status already holds %d records; skipping seed", existing)
            return 0

        records = sample_records()
        for record in records:
            # Let the database assign ids
            record.id = None
            s.add(record)
        s.commit()

    logger.info("Inserted %d sample records", len(records))
    return len(records)


def main(argv=None) -> None:
    from tos.config import get_settings

    parser = argparse.ArgumentParser(description="Seed the TOS database with sample records")
    parser.add_argument("--database-url", help="Override TOS_DATABASE_URL")
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    seed_database(build_engine(settings))


if __name__ == "__main__":
    main()
