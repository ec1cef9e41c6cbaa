"""Initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "entities",
        sa.Column("guid", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("subtype", sa.String(length=64), nullable=True),
        sa.Column("owner_guid", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("container_guid", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("site_guid", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("access_id", sa.Integer(), server_default=sa.text("2"), nullable=False),
        sa.Column("title", sa.String(length=512), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("time_created", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("time_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("guid"),
    )

    op.create_table(
        "users",
        sa.Column("guid", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=True),
        sa.Column("password_hash", sa.String(length=256), nullable=False),
        sa.Column("admin", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("banned", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("language", sa.String(length=8), server_default=sa.text("'en'"), nullable=False),
        sa.ForeignKeyConstraint(["guid"], ["entities.guid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("guid"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "sites",
        sa.Column("guid", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("url", sa.String(length=1024), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=True),
        sa.ForeignKeyConstraint(["guid"], ["entities.guid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("guid"),
    )

    op.create_table(
        "entity_relationships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("guid_one", sa.Integer(), nullable=False),
        sa.Column("relationship", sa.String(length=64), nullable=False),
        sa.Column("guid_two", sa.Integer(), nullable=False),
        sa.Column("time_created", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["guid_one"], ["entities.guid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["guid_two"], ["entities.guid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("guid_one", "relationship", "guid_two", name="uq_entity_relationships_triple"),
    )
    op.create_index("ix_entity_relationships_guid_one", "entity_relationships", ["guid_one"])
    op.create_index("ix_entity_relationships_guid_two", "entity_relationships", ["guid_two"])

    op.create_table(
        "notification_settings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_guid", sa.Integer(), nullable=False),
        sa.Column("method", sa.String(length=64), nullable=False),
        sa.Column("enabled", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.ForeignKeyConstraint(["user_guid"], ["users.guid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_guid", "method", name="uq_notification_settings_user_method"),
    )

    op.create_table(
        "queue_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_queue_items_name", "queue_items", ["name"])

    op.create_table(
        "config_values",
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("name"),
    )


def downgrade() -> None:
    op.drop_table("config_values")
    op.drop_index("ix_queue_items_name", table_name="queue_items")
    op.drop_table("queue_items")
    op.drop_table("notification_settings")
    op.drop_index("ix_entity_relationships_guid_two", table_name="entity_relationships")
    op.drop_index("ix_entity_relationships_guid_one", table_name="entity_relationships")
    op.drop_table("entity_relationships")
    op.drop_table("sites")
    op.drop_table("users")
    op.drop_table("entities")
