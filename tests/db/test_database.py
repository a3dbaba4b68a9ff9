"""Tests for database initialization and schema."""

import os

import pytest
from sqlalchemy import inspect

from taximeter.db.database import SCHEMA_VERSION, init_database
from taximeter.db.schema import MeterStoreEntry


@pytest.mark.unit
class TestDatabaseCreation:
    def test_database_creation(self, temp_sqlite_db):
        """Creates database with all tables."""
        session_maker = init_database(str(temp_sqlite_db))
        assert os.path.exists(temp_sqlite_db)

        tables = inspect(session_maker.kw["bind"]).get_table_names()

        assert "meter_store" in tables
        assert "ride_history" in tables
        assert "active_ride_path" in tables

    def test_creates_missing_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "meter.db"
        init_database(str(db_path))
        assert db_path.exists()

    def test_schema_version_seeded_once(self, temp_sqlite_db):
        init_database(str(temp_sqlite_db))
        session_maker = init_database(str(temp_sqlite_db))

        with session_maker() as session:
            entries = session.query(MeterStoreEntry).filter_by(key="schema_version").all()

        assert len(entries) == 1
        assert entries[0].value == SCHEMA_VERSION

    def test_ride_history_columns(self, temp_sqlite_db):
        session_maker = init_database(str(temp_sqlite_db))
        inspector = inspect(session_maker.kw["bind"])

        columns = {col["name"]: col for col in inspector.get_columns("ride_history")}

        for name in ("id", "ride_id", "started_at", "ended_at", "distance_km", "fare"):
            assert name in columns
        assert columns["id"]["primary_key"] == 1
        assert columns["start_lat"]["nullable"] is True
        assert columns["fare"]["nullable"] is False
