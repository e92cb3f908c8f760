#!/usr/bin/env python3
"""Database connectivity and repository round trip against a live PostgreSQL

Skipped unless a database is reachable with the settings from .env.
"""

from pathlib import Path
from uuid import uuid4

import psycopg2
import pytest
from dotenv import load_dotenv

from servicedesk.models.domain import LifecycleStatus, Project
from servicedesk.services.repositories import Repositories
from servicedesk.utils.config import Settings
from servicedesk.utils.database import Database

# Load environment variables
load_dotenv()

SCHEMA = Path(__file__).resolve().parent.parent / "db" / "schema.sql"


@pytest.fixture(scope="module")
def db():
    settings = Settings()
    try:
        conn = psycopg2.connect(settings.dsn, connect_timeout=3)
    except psycopg2.OperationalError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")
    with conn, conn.cursor() as cursor:
        cursor.execute(SCHEMA.read_text())
    conn.close()

    database = Database(settings)
    yield database
    database.close()


def test_connection(db):
    """Ping and check the collection tables exist"""
    assert db.ping()
    rows = db.execute_query(
        "SELECT tablename FROM pg_tables WHERE schemaname = 'public' ORDER BY tablename"
    )
    tables = {row["tablename"] for row in rows}
    assert {"users", "projects", "complaints", "invoices", "maintenances"} <= tables


def test_project_round_trip(db):
    repos = Repositories.postgres(db)
    project = repos.projects.insert(Project(client_name="Round Trip Ltd", created_by=uuid4()))
    try:
        loaded = repos.projects.get(project.id)
        assert loaded.client_name == "Round Trip Ltd"

        loaded.status = LifecycleStatus.CANCELLED
        repos.projects.save(loaded)
        active = repos.projects.find(exclude_cancelled=True, ids=[project.id])
        assert active == []
    finally:
        repos.projects.delete(project.id)
