"""Initial schema: users, sessions, products, audit logs, upload history"""

revision = "20261019_000000"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID


def upgrade():
    """Create the catalog, session and import tables."""
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("password_hash", sa.Text, nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(50), nullable=False, server_default="admin", index=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "role IN ('super_admin', 'admin', 'editor', 'viewer')", name="ck_users_role"
        ),
    )

    op.create_table(
        "sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.String(255), nullable=False),
        sa.Column("ip_address", sa.String(45)),
        sa.Column("user_agent", sa.Text),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_sessions_user", "sessions", ["user_id"])
    op.create_index("idx_sessions_expires", "sessions", ["expires_at"])

    op.create_table(
        "products",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("company_name", sa.String(255), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("brand_name", sa.String(255)),
        sa.Column("product_description", sa.Text),
        sa.Column("product_type", sa.String(255)),
        sa.Column("sub_type", sa.String(255)),
        sa.Column("applied_seasons", ARRAY(sa.Text)),
        sa.Column("suitable_crops", ARRAY(sa.Text)),
        sa.Column("benefits", sa.Text),
        sa.Column("dosage", sa.String(255)),
        sa.Column("application_method", sa.String(255)),
        sa.Column("pack_sizes", ARRAY(sa.Text)),
        sa.Column("price_range", sa.String(100)),
        sa.Column("available_states", ARRAY(sa.Text)),
        sa.Column("organic_certified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("iso_certified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("govt_approved", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("product_image_url", sa.Text),
        sa.Column("source_url", sa.Text),
        sa.Column("notes", sa.Text),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("custom_fields", JSONB, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("users.id")),
        sa.Column("updated_by", UUID(as_uuid=True), sa.ForeignKey("users.id")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_products_company", "products", ["company_name"])
    op.create_index("idx_products_type", "products", ["product_type"])
    op.create_index("idx_products_name", "products", ["product_name"])
    op.create_index("idx_products_active", "products", ["is_active"])
    op.create_index("idx_products_created", "products", ["created_at"])
    op.create_index(
        "idx_products_crops", "products", ["suitable_crops"], postgresql_using="gin"
    )
    op.create_index(
        "idx_products_seasons", "products", ["applied_seasons"], postgresql_using="gin"
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id")),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(100), nullable=False),
        sa.Column("entity_id", UUID(as_uuid=True)),
        sa.Column("old_values", JSONB),
        sa.Column("new_values", JSONB),
        sa.Column("ip_address", sa.String(45)),
        sa.Column("user_agent", sa.Text),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_audit_logs_user", "audit_logs", ["user_id"])
    op.create_index("idx_audit_logs_action", "audit_logs", ["action"])
    op.create_index("idx_audit_logs_created", "audit_logs", ["created_at"])

    op.create_table(
        "upload_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("filename", sa.String(500), nullable=False),
        sa.Column("file_type", sa.String(10), nullable=False),
        sa.Column("total_rows", sa.Integer, nullable=False, server_default="0"),
        sa.Column("successful_rows", sa.Integer, nullable=False, server_default="0"),
        sa.Column("failed_rows", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_log", JSONB),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade():
    """Drop all tables."""
    op.drop_table("upload_history")
    op.drop_table("audit_logs")
    op.drop_table("products")
    op.drop_table("sessions")
    op.drop_table("users")
