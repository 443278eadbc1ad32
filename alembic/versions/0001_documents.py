from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_documents"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "documents",
        sa.Column("path", sa.String(length=512), primary_key=True),
        sa.Column("parent", sa.String(length=512), nullable=False),
        sa.Column("value", sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), "postgresql"), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_index("ix_documents_parent", "documents", ["parent"])


def downgrade():
    op.drop_index("ix_documents_parent", table_name="documents")
    op.drop_table("documents")
