"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `notes` table holding published notes as rendered HTML.
How:   Integer identity primary key (insertion order), TEXT body, UTC timestamp.

Rollback: downgrade() drops the table entirely (destructive: all notes lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the notes table. Column docs live in knote/models/note.py."""
    op.create_table(
        "notes",

        sa.Column(
            "id",
            sa.Integer(),
            autoincrement=True,
            nullable=False,
            comment="Store-assigned identifier, increasing in insertion order",
        ),

        sa.Column(
            "description",
            sa.Text(),
            nullable=False,
            comment="Rendered HTML of the note's markup",
        ),

        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was created (UTC)",
        ),

        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    """Drop the notes table. Destructive: every note is lost."""
    op.drop_table("notes")
