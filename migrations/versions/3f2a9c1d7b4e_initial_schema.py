"""initial schema

Revision ID: 3f2a9c1d7b4e
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7b4e"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    """Create the content, follow and statistics tables."""
    op.create_table(
        "post",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("author", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("header_image", sa.Text(), nullable=True),
        sa.Column("anonymous", sa.Boolean(), nullable=False),
        _timestamp("created"),
        _timestamp("updated", nullable=True),
        sa.Column("updated_by", sa.Text(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False),
        sa.Column("trend", sa.Float(), nullable=False),
        sa.CheckConstraint("type IN ('question', 'article', 'link')", name="ck_post_type"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_author", "post", ["author"])
    op.create_index("ix_post_created", "post", ["created"])

    op.create_table(
        "tag",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("tag", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tag"),
    )
    op.create_table(
        "entity",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_ref", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("entity_ref"),
    )
    op.create_table(
        "post_tag",
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("tag_id", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tag.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "tag_id"),
    )
    op.create_table(
        "post_entity",
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("entity_id", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["entity_id"], ["entity.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "entity_id"),
    )
    op.create_table(
        "user_tag",
        sa.Column("user_ref", sa.Text(), nullable=False),
        sa.Column("tag_id", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["tag_id"], ["tag.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_ref", "tag_id"),
    )
    op.create_table(
        "user_entity",
        sa.Column("user_ref", sa.Text(), nullable=False),
        sa.Column("entity_id", sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(["entity_id"], ["entity.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_ref", "entity_id"),
    )

    op.create_table(
        "post_favorite",
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("user_ref", sa.Text(), nullable=False),
        _timestamp("created"),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "user_ref"),
    )
    op.create_table(
        "post_view",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("user_ref", sa.Text(), nullable=False),
        _timestamp("timestamp"),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_post_view_post_id", "post_view", ["post_id"])
    op.create_table(
        "post_vote",
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("user_ref", sa.Text(), nullable=False),
        sa.Column("score", sa.SmallInteger(), nullable=False),
        _timestamp("timestamp"),
        sa.CheckConstraint("score IN (1, -1)", name="ck_post_vote_score"),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("post_id", "user_ref"),
    )
    op.create_index("ix_post_vote_post_id", "post_vote", ["post_id"])

    op.create_table(
        "answer",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("author", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("anonymous", sa.Boolean(), nullable=False),
        _timestamp("created"),
        _timestamp("updated", nullable=True),
        sa.Column("updated_by", sa.Text(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("correct", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_answer_post_id", "answer", ["post_id"])
    op.create_index(
        "uq_answer_correct_per_post",
        "answer",
        ["post_id"],
        unique=True,
        sqlite_where=sa.text("correct = 1"),
        postgresql_where=sa.text("correct IS TRUE"),
    )
    op.create_table(
        "answer_vote",
        sa.Column("answer_id", sa.BigInteger(), nullable=False),
        sa.Column("user_ref", sa.Text(), nullable=False),
        sa.Column("score", sa.SmallInteger(), nullable=False),
        _timestamp("timestamp"),
        sa.CheckConstraint("score IN (1, -1)", name="ck_answer_vote_score"),
        sa.ForeignKeyConstraint(["answer_id"], ["answer.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("answer_id", "user_ref"),
    )
    op.create_index("ix_answer_vote_answer_id", "answer_vote", ["answer_id"])

    op.create_table(
        "comment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("post_id", sa.BigInteger(), nullable=True),
        sa.Column("answer_id", sa.BigInteger(), nullable=True),
        sa.Column("author", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created"),
        sa.CheckConstraint(
            "(post_id IS NULL) <> (answer_id IS NULL)",
            name="ck_comment_single_parent",
        ),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["answer_id"], ["answer.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_post_id", "comment", ["post_id"])
    op.create_index("ix_comment_answer_id", "comment", ["answer_id"])

    op.create_table(
        "collection",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("header_image", sa.Text(), nullable=True),
        sa.Column("read_access", sa.String(length=16), nullable=False),
        sa.Column("edit_access", sa.String(length=16), nullable=False),
        _timestamp("created"),
        _timestamp("updated", nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_collection_owner", "collection", ["owner"])
    op.create_table(
        "collection_post",
        sa.Column("collection_id", sa.BigInteger(), nullable=False),
        sa.Column("post_id", sa.BigInteger(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["collection_id"], ["collection.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("collection_id", "post_id"),
    )

    op.create_table(
        "attachment",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uuid", sa.Text(), nullable=False),
        sa.Column("location_type", sa.Text(), nullable=False),
        sa.Column("location_uri", sa.Text(), nullable=False),
        sa.Column("extension", sa.Text(), nullable=False),
        sa.Column("mime_type", sa.Text(), nullable=False),
        sa.Column("path", sa.Text(), nullable=True),
        sa.Column("binary_image", sa.LargeBinary(), nullable=True),
        sa.Column("creator", sa.Text(), nullable=True),
        _timestamp("created"),
        sa.Column("post_id", sa.BigInteger(), nullable=True),
        sa.Column("answer_id", sa.BigInteger(), nullable=True),
        sa.Column("collection_id", sa.BigInteger(), nullable=True),
        sa.ForeignKeyConstraint(["post_id"], ["post.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["answer_id"], ["answer.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["collection_id"], ["collection.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uuid"),
    )

    stat_columns = (
        "total_views",
        "total_questions",
        "total_articles",
        "total_answers",
        "total_comments",
        "total_votes",
    )
    op.create_table(
        "global_stat",
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("total_users", sa.Integer(), nullable=False),
        *(sa.Column(name, sa.Integer(), nullable=False) for name in stat_columns),
        sa.Column("total_links", sa.Integer(), nullable=False),
        sa.Column("total_tags", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("date"),
    )
    op.create_table(
        "user_stat",
        sa.Column("user_ref", sa.Text(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        *(sa.Column(name, sa.Integer(), nullable=False) for name in stat_columns),
        sa.PrimaryKeyConstraint("user_ref", "date"),
    )


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    for table in (
        "user_stat",
        "global_stat",
        "attachment",
        "collection_post",
        "collection",
        "comment",
        "answer_vote",
        "answer",
        "post_vote",
        "post_view",
        "post_favorite",
        "user_entity",
        "user_tag",
        "post_entity",
        "post_tag",
        "entity",
        "tag",
        "post",
    ):
        op.drop_table(table)
