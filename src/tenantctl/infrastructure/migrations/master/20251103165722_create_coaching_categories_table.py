"""create coaching_categories table

Catalogue shared by every tenant.
"""

import sqlalchemy as sa
from alembic import op


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "coaching_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        # Hex color for the UI, e.g. #FF5733
        sa.Column("color", sa.String(10), nullable=True, server_default="#FFFFFF"),
        # Icon name from the front end's icon set
        sa.Column("icon", sa.String(50), nullable=False),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column(
            "display_order", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
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
        "ix_coaching_categories_slug", "coaching_categories", ["slug"]
    )
    op.create_index(
        "ix_coaching_categories_is_active", "coaching_categories", ["is_active"]
    )
    op.create_index(
        "ix_coaching_categories_display_order",
        "coaching_categories",
        ["display_order"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TABLE IF EXISTS coaching_categories")
