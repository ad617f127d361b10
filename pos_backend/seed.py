# pos_backend/seed.py
"""
Create (or replace) the admin login.

    POS_ADMIN_EMAIL=admin@example.com POS_ADMIN_PASSWORD=... python -m pos_backend.seed
"""
import logging
import os
import sys

from sqlalchemy import delete
from sqlmodel import Session

from pos_backend import configure_logging
from pos_backend.auth import hash_password
from pos_backend.config import load_settings
from pos_backend.db import build_engine, init_db, unit_of_work
from pos_backend.models import User

logger = logging.getLogger("pos.seed")


def seed_admin(session: Session, email: str, password: str) -> User:
    """Drop every existing user and create a single admin."""
    with unit_of_work(session):
        session.exec(delete(User))
        user = User(email=email.strip().lower(), password_hash=hash_password(password), role="admin")
        session.add(user)
    session.refresh(user)
    logger.info("admin user %s created", user.email)
    return user


def main() -> int:
    settings = load_settings()
    configure_logging(settings.log_level)

    email = os.environ.get("POS_ADMIN_EMAIL", "admin@example.com")
    password = os.environ.get("POS_ADMIN_PASSWORD")
    if not password:
        logger.error("POS_ADMIN_PASSWORD is required")
        return 1

    engine = build_engine(settings.database_url)
    try:
        init_db(engine)
        with Session(engine) as session:
            seed_admin(session, email, password)
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
