"""create org_settings table"""

import sqlalchemy as sa
from alembic import op


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "org_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        # External organization id, kept for reference and audits
        sa.Column("organization_id", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("branding_logo_url", sa.String(500), nullable=True),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("billing_plan_id", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_org_settings_organization_id", "org_settings", ["organization_id"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TABLE IF EXISTS org_settings")
