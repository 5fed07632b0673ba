"""create learnify tables

Revision ID: 3b1f2c9a7d10
Revises:
Create Date: 2026-10-17 10:12:44.318202

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b1f2c9a7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("avatar_public_id", sa.String(255), nullable=True),
        sa.Column("bio", sa.String(200), nullable=True),
        sa.Column("reset_password_token", sa.String(6), nullable=True),
        sa.Column("reset_password_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.Column("last_active", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_changed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("subtitle", sa.String(200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("level", sa.String(20), nullable=False, server_default="beginner"),
        sa.Column("thumbnail", sa.Text(), nullable=True),
        sa.Column("thumbnail_public_id", sa.String(255), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("instructor_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_duration", sa.Float(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_courses_id", "courses", ["id"])
    op.create_index("ix_courses_title", "courses", ["title"])
    op.create_index("ix_courses_category", "courses", ["category"])
    op.create_index("ix_courses_instructor_id", "courses", ["instructor_id"])

    op.create_table(
        "lectures",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("public_id", sa.String(255), nullable=False),
        sa.Column("duration", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_preview", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("order", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("course_id", "order", name="uq_lecture_course_order"),
    )
    op.create_index("ix_lectures_id", "lectures", ["id"])
    op.create_index("ix_lectures_course_id", "lectures", ["course_id"])

    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("enrolled_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
    )
    op.create_index("ix_enrollments_id", "enrollments", ["id"])
    op.create_index("ix_enrollments_user_id", "enrollments", ["user_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])

    op.create_table(
        "course_purchases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="usd"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("payment_method", sa.String(50), nullable=False, server_default="stripe"),
        sa.Column("payment_id", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_course_purchases_id", "course_purchases", ["id"])
    op.create_index("ix_course_purchases_course_id", "course_purchases", ["course_id"])
    op.create_index("ix_course_purchases_user_id", "course_purchases", ["user_id"])
    op.create_index("ix_course_purchases_status", "course_purchases", ["status"])
    op.create_index("ix_course_purchases_payment_id", "course_purchases", ["payment_id"], unique=True)

    op.create_table(
        "course_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completion_percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_accessed", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "course_id", name="uq_progress_user_course"),
    )
    op.create_index("ix_course_progress_id", "course_progress", ["id"])
    op.create_index("ix_course_progress_user_id", "course_progress", ["user_id"])
    op.create_index("ix_course_progress_course_id", "course_progress", ["course_id"])

    op.create_table(
        "lecture_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "course_progress_id",
            sa.Integer(),
            sa.ForeignKey("course_progress.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("lecture_id", sa.Integer(), sa.ForeignKey("lectures.id", ondelete="CASCADE"), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("watch_time", sa.Float(), nullable=False, server_default="0"),
        sa.Column("last_watched", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("course_progress_id", "lecture_id", name="uq_lecture_progress_entry"),
    )
    op.create_index("ix_lecture_progress_id", "lecture_progress", ["id"])
    op.create_index("ix_lecture_progress_course_progress_id", "lecture_progress", ["course_progress_id"])
    op.create_index("ix_lecture_progress_lecture_id", "lecture_progress", ["lecture_id"])


def downgrade() -> None:
    op.drop_table("lecture_progress")
    op.drop_table("course_progress")
    op.drop_table("course_purchases")
    op.drop_table("enrollments")
    op.drop_table("lectures")
    op.drop_table("courses")
    op.drop_table("users")
