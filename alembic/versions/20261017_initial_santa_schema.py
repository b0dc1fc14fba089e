"""santa: initial schema (users, santa_events, participants, assignments, wishlist, activity)

Revision ID: 20261017_initial
Revises:
Create Date: 2026-10-17 12:00:00.000000
"""
from __future__ import annotations
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "20261017_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    event_status = sa.Enum("created", "assigned", name="santa_event_status")
    gift_status = sa.Enum("pending", "purchased", "delivered", name="gift_status")
    wishlist_privacy = sa.Enum("all", "friends", name="wishlist_privacy")

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.String(), nullable=True),
        sa.Column("first_name", sa.String(), nullable=True),
        sa.Column("last_name", sa.String(), nullable=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("photo_url", sa.String(), nullable=True),
        sa.Column("language_code", sa.String(length=8), nullable=True),
        sa.Column("allows_write_to_pm", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)
    op.create_index("ix_users_username", "users", ["username"])
    op.create_index("ix_users_name", "users", ["name"])

    op.create_table(
        "santa_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("creator_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("min_budget", sa.Integer(), nullable=True),
        sa.Column("max_budget", sa.Integer(), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", event_status, nullable=False, server_default=sa.text("'created'")),
        sa.Column("invite_code", sa.String(length=32), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "min_budget IS NULL OR max_budget IS NULL OR min_budget <= max_budget",
            name="ck_santa_events_budget_range",
        ),
    )
    op.create_index("ix_santa_events_id", "santa_events", ["id"])
    op.create_index("ix_santa_events_creator_id", "santa_events", ["creator_id"])
    op.create_index("ix_santa_events_status", "santa_events", ["status"])

    op.create_table(
        "event_participants",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("santa_events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_mock", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("invited_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )
    op.create_index("ix_event_participants_id", "event_participants", ["id"])
    op.create_index("ix_event_participants_event_id", "event_participants", ["event_id"])
    op.create_index("ix_event_participants_user_id", "event_participants", ["user_id"])
    op.create_index("ix_event_participants_event_id_id", "event_participants", ["event_id", "id"])

    op.create_table(
        "santa_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("santa_events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("giver_id", sa.Integer(), sa.ForeignKey("event_participants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("event_participants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("gift_status", gift_status, nullable=False, server_default=sa.text("'pending'")),
        sa.Column("gift_photo_url", sa.String(length=512), nullable=True),
        sa.Column("gift_note", sa.Text(), nullable=True),
        sa.Column("purchased_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "giver_id", name="uq_santa_assignments_event_giver"),
        sa.UniqueConstraint("event_id", "receiver_id", name="uq_santa_assignments_event_receiver"),
        sa.CheckConstraint("giver_id <> receiver_id", name="ck_santa_assignments_no_self"),
    )
    op.create_index("ix_santa_assignments_id", "santa_assignments", ["id"])
    op.create_index("ix_santa_assignments_event_id", "santa_assignments", ["event_id"])

    op.create_table(
        "friends",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_min", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_max", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("source_event_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_min", "user_max", name="uq_friend_pair"),
        sa.CheckConstraint("user_min < user_max", name="ck_friend_min_lt_max"),
    )
    op.create_index("ix_friends_id", "friends", ["id"])
    op.create_index("ix_friends_user_min", "friends", ["user_min"])
    op.create_index("ix_friends_user_max", "friends", ["user_max"])

    op.create_table(
        "wishlist_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=512), nullable=True),
        sa.Column("privacy", wishlist_privacy, nullable=False, server_default=sa.text("'all'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_wishlist_items_id", "wishlist_items", ["id"])
    op.create_index("ix_wishlist_items_user_id", "wishlist_items", ["user_id"])

    op.create_table(
        "wishlist_reservations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("wishlist_item_id", sa.Integer(), sa.ForeignKey("wishlist_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("reserved_by", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("wishlist_item_id", name="uq_wishlist_reservations_item"),
    )
    op.create_index("ix_wishlist_reservations_id", "wishlist_reservations", ["id"])
    op.create_index("ix_wishlist_reservations_reserved_by", "wishlist_reservations", ["reserved_by"])

    op.create_table(
        "user_achievements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("achievement_type", sa.String(length=32), nullable=False),
        sa.Column("unlocked_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "achievement_type", name="uq_user_achievements_user_type"),
    )
    op.create_index("ix_user_achievements_id", "user_achievements", ["id"])
    op.create_index("ix_user_achievements_user_id", "user_achievements", ["user_id"])

    op.create_table(
        "activity",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=True),
        sa.Column("target_user_id", sa.Integer(), nullable=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("data", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("idempotency_key", sa.String(length=64), nullable=True),
        sa.UniqueConstraint("idempotency_key", name="uq_activity_idempotency_key"),
    )
    op.create_index("ix_activity_id", "activity", ["id"])
    # FK на santa_events специально НЕ ставим: лента переживает удаление события.
    op.create_index("ix_activity_event_created_at", "activity", ["event_id", "created_at"])
    op.create_index("ix_activity_target_created_at", "activity", ["target_user_id", "created_at"])


def downgrade() -> None:
    op.drop_table("activity")
    op.drop_table("user_achievements")
    op.drop_table("wishlist_reservations")
    op.drop_table("wishlist_items")
    op.drop_table("friends")
    op.drop_table("santa_assignments")
    op.drop_table("event_participants")
    op.drop_table("santa_events")
    op.drop_table("users")

    bind = op.get_bind()
    for name in ("wishlist_privacy", "gift_status", "santa_event_status"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
