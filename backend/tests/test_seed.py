"""
ClassNotes Backend - Seed Command Tests
"""

import pytest

from classnotes.database import Database
from classnotes.seed import parse_args, seed
from classnotes.services.catalog_service import CatalogService


class TestSeed:

    def test_parse_args(self):
        args = parse_args(["--username", "admin", "--password", "pw", "--sample"])

        assert args.username == "admin"
        assert args.sample is True
        assert args.create_schema is False

    def test_credentials_are_required(self):
        with pytest.raises(SystemExit):
            parse_args(["--username", "admin"])

    @pytest.mark.asyncio
    async def test_seed_is_rerunnable(self, test_settings, auth_service):
        created = await seed(test_settings, "admin", "admin123", sample=True, create_schema=True)
        again = await seed(test_settings, "admin", "other", sample=True, create_schema=True)

        assert created is True
        assert again is False

        database = Database(test_settings)
        try:
            async with database.session() as db:
                token = await auth_service.login(db, "admin", "admin123")
                subjects = await CatalogService().list_subjects(db)
        finally:
            await database.dispose()

        assert auth_service.verify_token(token).username == "admin"
        assert [(s.name, s.semester_id.name, s.class_id.name) for s in subjects] == [
            ("Database", "Semester 1", "BCA")
        ]
