"""Add domain and domainhealthlog tables

Revision ID: b1_1_domains
"""
from alembic import op
import sqlalchemy as sa

revision = "b1_1_domains"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "domain",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("domain", sa.String(253), nullable=False),
        sa.Column("verification_method", sa.String(8), nullable=False, server_default="dns"),
        sa.Column("verification_token", sa.String(64), nullable=False),
        sa.Column("verification_status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("last_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_healthy", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_health_check", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settings", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("verification_method IN ('dns', 'file')", name="ck_domain_verification_method"),
        sa.CheckConstraint(
            "verification_status IN ('pending', 'verified', 'failed')",
            name="ck_domain_verification_status",
        ),
    )
    op.create_index("ix_domain_id", "domain", ["id"])
    op.create_index("ix_domain_user_id", "domain", ["user_id"])
    op.create_index("ix_domain_domain", "domain", ["domain"], unique=True)

    op.create_table(
        "domainhealthlog",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("domain_id", sa.Uuid(), sa.ForeignKey("domain.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status_code", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("response_time", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_healthy", sa.Boolean(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_domainhealthlog_id", "domainhealthlog", ["id"])
    op.create_index("ix_domainhealthlog_domain_id", "domainhealthlog", ["domain_id"])
    op.create_index("ix_domainhealthlog_created_at", "domainhealthlog", ["created_at"])


def downgrade() -> None:
    op.drop_table("domainhealthlog")
    op.drop_table("domain")
