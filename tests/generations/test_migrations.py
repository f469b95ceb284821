"""Tests that the baseline migration matches the ORM schema."""

import importlib.util

import pytest
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import create_engine, inspect, text

from generations.constants import MODULE_ROOT
from generations.orm_models import Base

MIGRATION_PATH = MODULE_ROOT / "migrations" / "versions" / "001_initial_schema.py"


@pytest.fixture
def migration():
    spec = importlib.util.spec_from_file_location("initial_schema", MIGRATION_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def run(engine, step):
    with engine.begin() as conn:
        context = MigrationContext.configure(conn)
        with Operations.context(context):
            step()


class TestInitialSchema:
    """Tests for 001_initial_schema."""

    def test_upgrade_matches_orm(self, migration):
        """Test that the migration creates the same tables and columns as the ORM."""
        engine = create_engine("sqlite:///:memory:")
        run(engine, migration.upgrade)

        inspector = inspect(engine)
        assert set(inspector.get_table_names()) == set(Base.metadata.tables)
        for name, table in Base.metadata.tables.items():
            columns = {column["name"] for column in inspector.get_columns(name)}
            assert columns == {column.name for column in table.columns}, name

    def test_flashcard_foreign_keys(self, migration):
        engine = create_engine("sqlite:///:memory:")
        run(engine, migration.upgrade)

        with engine.connect() as conn:
            rows = conn.execute(text("PRAGMA foreign_key_list(flashcards)")).fetchall()

        # (id, seq, table, from, to, on_update, on_delete, match)
        assert {row[2]: row[6] for row in rows} == {"users": "CASCADE", "generations": "SET NULL"}

    def test_downgrade_drops_everything(self, migration):
        engine = create_engine("sqlite:///:memory:")
        run(engine, migration.upgrade)
        run(engine, migration.downgrade)

        assert inspect(engine).get_table_names() == []
