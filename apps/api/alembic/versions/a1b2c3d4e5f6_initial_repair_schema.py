"""Initial repair desk schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000

- users, line_oa_links
- repair_tickets, repair_ticket_assignees, repair_attachments, repair_ticket_logs
"""

from alembic import op
import sqlalchemy as sa


revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="USER"),
        sa.Column("department", sa.String(length=100), nullable=True),
        sa.Column("phone_number", sa.String(length=32), nullable=True),
        sa.Column("line_id", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "line_oa_links",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("line_user_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_line_oa_links_line_user_id", "line_oa_links", ["line_user_id"], unique=True)

    op.create_table(
        "repair_tickets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ticket_code", sa.String(length=32), nullable=False),
        sa.Column("reporter_name", sa.String(length=100), nullable=False),
        sa.Column("reporter_department", sa.String(length=100), nullable=True),
        sa.Column("reporter_phone", sa.String(length=32), nullable=True),
        sa.Column("reporter_line_id", sa.String(length=64), nullable=True),
        sa.Column("problem_category", sa.String(length=64), nullable=False),
        sa.Column("problem_title", sa.String(length=200), nullable=False),
        sa.Column("problem_description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("urgency", sa.String(length=16), nullable=False, server_default="NORMAL"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="PENDING"),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_repair_tickets_ticket_code", "repair_tickets", ["ticket_code"], unique=True)
    op.create_index("ix_repair_tickets_status", "repair_tickets", ["status"])
    op.create_index("ix_repair_tickets_user_id", "repair_tickets", ["user_id"])

    op.create_table(
        "repair_ticket_assignees",
        sa.Column(
            "ticket_id",
            sa.Integer(),
            sa.ForeignKey("repair_tickets.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "repair_attachments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ticket_id",
            sa.Integer(),
            sa.ForeignKey("repair_tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("file_url", sa.String(length=1024), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mime_type", sa.String(length=128), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_repair_attachments_ticket_id", "repair_attachments", ["ticket_id"])

    op.create_table(
        "repair_ticket_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ticket_id",
            sa.Integer(),
            sa.ForeignKey("repair_tickets.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("from_value", sa.Text(), nullable=True),
        sa.Column("to_value", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_repair_ticket_logs_ticket_id", "repair_ticket_logs", ["ticket_id"])


def downgrade() -> None:
    op.drop_index("ix_repair_ticket_logs_ticket_id", table_name="repair_ticket_logs")
    op.drop_table("repair_ticket_logs")
    op.drop_index("ix_repair_attachments_ticket_id", table_name="repair_attachments")
    op.drop_table("repair_attachments")
    op.drop_table("repair_ticket_assignees")
    op.drop_index("ix_repair_tickets_user_id", table_name="repair_tickets")
    op.drop_index("ix_repair_tickets_status", table_name="repair_tickets")
    op.drop_index("ix_repair_tickets_ticket_code", table_name="repair_tickets")
    op.drop_table("repair_tickets")
    op.drop_index("ix_line_oa_links_line_user_id", table_name="line_oa_links")
    op.drop_table("line_oa_links")
    op.drop_table("users")
