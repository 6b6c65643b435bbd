# This project was developed with assistance from AI tools.
"""initial schema: credentials, scopes, resources, revoked sessions, audit trail

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-17

"""

import sqlalchemy as sa
from alembic import op
from scopegate_db.enums import ScopeLevel, UserRole

revision = "3f2a9c1d7e40"
down_revision = None
branch_labels = None
depends_on = None

TRIGGER_FUNCTION = """
CREATE OR REPLACE FUNCTION audit_events_prevent_mutation()
RETURNS TRIGGER AS $$
BEGIN
    RAISE EXCEPTION 'audit_events is append-only: % denied for row %', TG_OP, OLD.id;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

TRIGGERS = (
    """
CREATE TRIGGER audit_events_no_update
    BEFORE UPDATE ON audit_events
    FOR EACH ROW
    EXECUTE FUNCTION audit_events_prevent_mutation();
""",
    """
CREATE TRIGGER audit_events_no_delete
    BEFORE DELETE ON audit_events
    FOR EACH ROW
    EXECUTE FUNCTION audit_events_prevent_mutation();
""",
)


def _is_postgres() -> bool:
    return op.get_bind().dialect.name == "postgresql"


def upgrade() -> None:
    op.create_table(
        "credentials",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "role", sa.Enum(UserRole, name="user_role", native_enum=False), nullable=False
        ),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("scope_path", sa.String(1024), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("role", "email", name="uq_credential_role_email"),
    )
    op.create_index("ix_credentials_email", "credentials", ["email"])

    op.create_table(
        "scopes",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column(
            "level", sa.Enum(ScopeLevel, name="scope_level", native_enum=False), nullable=False
        ),
        sa.Column("parent_id", sa.String(36), nullable=True),
        sa.Column("path", sa.String(1024), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["parent_id"], ["scopes.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("path"),
    )
    op.create_index("ix_scopes_parent_id", "scopes", ["parent_id"])

    op.create_table(
        "resources",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("resource_type", sa.String(64), nullable=False),
        sa.Column("owner_scope_path", sa.String(1024), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("resource_type", "owner_scope_path", "created_by", "deleted_at"):
        op.create_index(f"ix_resources_{column}", "resources", [column])

    op.create_table(
        "revoked_sessions",
        sa.Column("session_id", sa.String(64), nullable=False),
        sa.Column("principal_id", sa.String(36), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("session_id"),
    )
    op.create_index("ix_revoked_sessions_principal_id", "revoked_sessions", ["principal_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("prev_hash", sa.String(64), nullable=True),
        sa.Column("principal_id", sa.String(36), nullable=True),
        sa.Column("principal_role", sa.String(50), nullable=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(64), nullable=True),
        sa.Column("resource_id", sa.String(36), nullable=True),
        sa.Column("event_data", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    for column in ("principal_id", "event_type", "resource_id"):
        op.create_index(f"ix_audit_events_{column}", "audit_events", [column])

    if _is_postgres():
        op.execute(TRIGGER_FUNCTION)
        for trigger in TRIGGERS:
            op.execute(trigger)


def downgrade() -> None:
    if _is_postgres():
        op.execute("DROP TRIGGER IF EXISTS audit_events_no_delete ON audit_events")
        op.execute("DROP TRIGGER IF EXISTS audit_events_no_update ON audit_events")
        op.execute("DROP FUNCTION IF EXISTS audit_events_prevent_mutation()")

    for column in ("principal_id", "event_type", "resource_id"):
        op.drop_index(f"ix_audit_events_{column}", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_revoked_sessions_principal_id", table_name="revoked_sessions")
    op.drop_table("revoked_sessions")
    for column in ("resource_type", "owner_scope_path", "created_by", "deleted_at"):
        op.drop_index(f"ix_resources_{column}", table_name="resources")
    op.drop_table("resources")
    op.drop_index("ix_scopes_parent_id", table_name="scopes")
    op.drop_table("scopes")
    op.drop_index("ix_credentials_email", table_name="credentials")
    op.drop_table("credentials")
