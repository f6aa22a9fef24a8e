"""add_event_type_index_and_touch_trigger

Revision ID: 8e07b5d2c6fa
Revises: 3f1c2a9b7d41
Create Date: 2025-10-20 11:40:03.571920

"""

from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = "8e07b5d2c6fa"
down_revision: Union[str, Sequence[str], None] = "3f1c2a9b7d41"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Index event types by analysis and keep analyses.updated_at current."""
    op.create_index(
        "ix_analysis_event_types_analysis_id",
        "analysis_event_types",
        ["analysis_id"],
        unique=False,
    )

    op.execute(
        """
        CREATE TRIGGER trg_analyses_touch_updated_at
        AFTER UPDATE OF name, path, duration ON analyses
        FOR EACH ROW
        BEGIN
            UPDATE analyses SET updated_at = CURRENT_TIMESTAMP WHERE id = NEW.id;
        END
        """
    )


def downgrade() -> None:
    """Remove the updated_at trigger and the analysis_id index."""
    op.execute("DROP TRIGGER IF EXISTS trg_analyses_touch_updated_at")
    op.drop_index(
        "ix_analysis_event_types_analysis_id", table_name="analysis_event_types"
    )
