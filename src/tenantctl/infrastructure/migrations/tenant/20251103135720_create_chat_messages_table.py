"""create chat_messages table

Chat history with an optional embedding per message. The vector type and
its operator classes come from the pgvector extension installed in the
shared schema, which is second on the search path during tenant
migrations.
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

EMBEDDING_DIMENSIONS = 786


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.String(100), nullable=False),
        sa.Column(
            "role",
            sa.Enum(
                "USER",
                "ASSISTANT",
                "SYSTEM",
                name="chat_message_role",
                native_enum=False,
                create_constraint=True,
                length=20,
            ),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "content_type",
            sa.Enum(
                "TEXT",
                "JSON",
                "AUDIO",
                name="chat_message_content_type",
                native_enum=False,
                create_constraint=True,
                length=20,
            ),
            nullable=False,
            server_default="TEXT",
        ),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
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
    op.create_index("ix_chat_messages_session_id", "chat_messages", ["session_id"])
    op.create_index("ix_chat_messages_role", "chat_messages", ["role"])

    op.execute(
        "ALTER TABLE chat_messages "
        f"ADD COLUMN embedding_vector vector({EMBEDDING_DIMENSIONS})"
    )
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_chat_messages_embedding
        ON chat_messages
        USING ivfflat (embedding_vector vector_cosine_ops)
        WITH (lists = 100)
        WHERE embedding_vector IS NOT NULL
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP TABLE IF EXISTS chat_messages")
