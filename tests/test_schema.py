import pytest
from sqlalchemy import create_engine, inspect

from elgg.core.exceptions import DatabaseError
from elgg.db import models  # noqa: F401
from elgg.db.base import Base
from elgg.db.session import check_environment, create_engine_for


def test_schema_creation_in_sqlite_includes_all_tables():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)

    table_names = set(inspect(engine).get_table_names())
    assert {
        "entities",
        "users",
        "sites",
        "entity_relationships",
        "notification_settings",
        "queue_items",
        "config_values",
    }.issubset(table_names)


def test_relationship_triple_is_unique():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)

    constraints = inspect(engine).get_unique_constraints("entity_relationships")
    assert any(set(c["column_names"]) == {"guid_one", "relationship", "guid_two"} for c in constraints)


def test_check_environment_accepts_sqlite():
    check_environment("sqlite+pysqlite:///:memory:")


def test_check_environment_rejects_unknown_dialect():
    with pytest.raises(DatabaseError):
        check_environment("nosuchdb://localhost/elgg")


def test_in_memory_engine_shares_one_connection():
    engine = create_engine_for("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    assert "entities" in inspect(engine).get_table_names()
