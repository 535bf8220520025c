"""
ClassNotes Backend - Seed Command
===================================

What:  Creates a first account and, optionally, a sample catalog tree.
Who:   Operators, once per fresh deployment.

Usage:
    python -m classnotes.seed --username admin --password 'S3cret!'
    python -m classnotes.seed --username admin --password 'S3cret!' --sample
    python -m classnotes.seed ... --create-schema   # no Alembic, e.g. local SQLite

Reads DATABASE_URL, JWT_SECRET and the Argon2 settings from the
environment (or .env), exactly like the server. Re-running is safe: an
existing account or sample class is left untouched.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classnotes.config import Settings, settings as default_settings
from classnotes.database import Database
from classnotes.exceptions import ClassNotesError, ConflictError
from classnotes.models.catalog import SchoolClass
from classnotes.services.auth_service import AuthService
from classnotes.services.catalog_service import CatalogService
from classnotes.services.security import Argon2PasswordHasher, JWTTokenSigner

logger = logging.getLogger("classnotes.seed")

SAMPLE_CLASS = "BCA"
SAMPLE_SEMESTER = "Semester 1"
SAMPLE_SUBJECT = "Database"


async def seed_sample_catalog(db: AsyncSession, catalog: CatalogService) -> bool:
    """Create BCA → Semester 1 → Database unless a class named BCA exists."""
    existing = await db.scalar(select(SchoolClass.id).where(SchoolClass.name == SAMPLE_CLASS))
    if existing is not None:
        logger.info("Sample class '%s' already exists; skipping", SAMPLE_CLASS)
        return False

    school_class = await catalog.create_class(db, SAMPLE_CLASS)
    semester = await catalog.create_semester(db, SAMPLE_SEMESTER, school_class.id)
    await catalog.create_subject(db, SAMPLE_SUBJECT, semester.id)
    logger.info("Sample catalog created: %s / %s / %s", SAMPLE_CLASS, SAMPLE_SEMESTER, SAMPLE_SUBJECT)
    return True


async def seed(
    app_settings: Settings,
    username: str,
    password: str,
    sample: bool = False,
    create_schema: bool = False,
) -> bool:
    """
    Returns:
        True if the account was created, False if it already existed.
    """
    app_settings.validate_required_for_production()

    database = Database(app_settings)
    auth_service = AuthService(
        hasher=Argon2PasswordHasher(
            time_cost=app_settings.argon2_time_cost,
            memory_cost=app_settings.argon2_memory_cost,
            parallelism=app_settings.argon2_parallelism,
        ),
        signer=JWTTokenSigner(
            secret_key=app_settings.jwt_secret,
            expiry_hours=app_settings.token_expiry_hours,
            algorithm=app_settings.jwt_algorithm,
        ),
    )

    try:
        if create_schema:
            await database.create_all()
            logger.info("Schema created")

        created = True
        async with database.session() as db:
            try:
                await auth_service.register(db, username, password)
                logger.info("User created: %s", username)
            except ConflictError:
                logger.info("User '%s' already exists; leaving it unchanged", username)
                created = False

        if sample:
            async with database.session() as db:
                await seed_sample_catalog(db, CatalogService())

        return created
    finally:
        await database.dispose()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m classnotes.seed",
        description="Create an initial ClassNotes account and optional sample data",
    )
    parser.add_argument("--username", required=True, help="Account username")
    parser.add_argument("--password", required=True, help="Account password")
    parser.add_argument(
        "--sample",
        action="store_true",
        help=f"Also create {SAMPLE_CLASS} / {SAMPLE_SEMESTER} / {SAMPLE_SUBJECT}",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create tables directly instead of relying on Alembic migrations",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    try:
        asyncio.run(
            seed(
                default_settings,
                username=args.username,
                password=args.password,
                sample=args.sample,
                create_schema=args.create_schema,
            )
        )
    except (ValueError, ClassNotesError) as e:
        logger.error("Seeding failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
