# orderdesk/db/init_db.py
from __future__ import annotations

import argparse
import logging

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderdesk.db.base import Base
from orderdesk.db.session import engine

# Import all models so metadata is complete
from orderdesk import models  # noqa: F401
from orderdesk.services.rbac_helpers import (
    ensure_default_roles,
    ensure_first_admin,
    seed_permissions,
)

logger = logging.getLogger(__name__)


def seed(db: Session) -> None:
    """
    Permissions, default Employee role and the first admin. Idempotent.
    """
    added = seed_permissions(db)
    ensure_default_roles(db)
    ensure_first_admin(db)
    db.commit()
    logger.info("Seed complete (%d new permission codes)", added)


def run(fresh: bool = False) -> None:
    if fresh:
        logger.warning("Dropping ALL tables (dev only)")
        Base.metadata.drop_all(bind=engine)

    logger.info("Creating all missing tables")
    Base.metadata.create_all(bind=engine)
    logger.info("Existing tables: %s", sorted(inspect(engine).get_table_names()))

    try:
        with Session(engine) as db:
            seed(db)
    except SQLAlchemyError:
        logger.exception("Seeding failed")
        raise


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(
        description="Initialize DB (create tables, seed permissions/roles/admin).")
    parser.add_argument(
        "--fresh",
        action="store_true",
        help="Drop & recreate all tables (DEV ONLY).",
    )
    args = parser.parse_args()
    run(fresh=args.fresh)
