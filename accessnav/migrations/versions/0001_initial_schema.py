"""Initial schema: users, RBAC tables, owned content

Revision ID: 0001
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

NOW = sa.text("CURRENT_TIMESTAMP")
TRUE = sa.text("true")
FALSE = sa.text("false")

LEGACY_ROLES = ("user", "admin")
CONTENT_STATUSES = ("active", "inactive")


def _enum(values, name):
    # Postgres types are created once up front and shared between tables
    return postgresql.ENUM(*values, name=name, create_type=False).with_variant(
        sa.Enum(*values, name=name), "sqlite"
    )


legacy_role = _enum(LEGACY_ROLES, "legacy_role")
content_status = _enum(CONTENT_STATUSES, "content_status")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), server_default=NOW),
        sa.Column("updated_at", sa.DateTime(), server_default=NOW),
    ]


def upgrade() -> None:
    """Create all core tables."""
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        postgresql.ENUM(*LEGACY_ROLES, name="legacy_role").create(bind, checkfirst=True)
        postgresql.ENUM(*CONTENT_STATUSES, name="content_status").create(bind, checkfirst=True)

    # --- users (no FK deps) ---
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("role", legacy_role, nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=TRUE),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- permissions (no FK deps) ---
    op.create_table(
        "permissions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("resource", sa.String(50), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=TRUE),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_permissions"),
        sa.UniqueConstraint("name", name="uq_permissions_name"),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"])
    op.create_index("ix_permissions_resource_action", "permissions", ["resource", "action"])

    # --- roles (no FK deps) ---
    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=TRUE),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=FALSE),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_roles"),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )
    op.create_index("ix_roles_name", "roles", ["name"])
    op.create_index("ix_roles_is_active", "roles", ["is_active"])

    # --- role_permissions (FK -> roles, permissions, users) ---
    op.create_table(
        "role_permissions",
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.Column("permission_id", sa.Uuid(), nullable=False),
        sa.Column("granted_by", sa.Uuid(), nullable=True),
        sa.Column("granted_at", sa.DateTime(), server_default=NOW),
        sa.PrimaryKeyConstraint("role_id", "permission_id", name="pk_role_permissions"),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"],
            name="fk_role_permissions_role_id_roles", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["permission_id"], ["permissions.id"],
            name="fk_role_permissions_permission_id_permissions", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["granted_by"], ["users.id"],
            name="fk_role_permissions_granted_by_users", ondelete="SET NULL",
        ),
    )
    op.create_index("ix_role_permissions_permission_id", "role_permissions", ["permission_id"])

    # --- user_roles (FK -> users, roles) ---
    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("role_id", sa.Uuid(), nullable=False),
        sa.Column("assigned_by", sa.Uuid(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), server_default=NOW),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=TRUE),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_user_roles"),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_id_role_id"),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"],
            name="fk_user_roles_user_id_users", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["role_id"], ["roles.id"],
            name="fk_user_roles_role_id_roles", ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["assigned_by"], ["users.id"],
            name="fk_user_roles_assigned_by_users", ondelete="SET NULL",
        ),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_role_id", "user_roles", ["role_id"])
    op.create_index("ix_user_roles_is_active", "user_roles", ["is_active"])
    op.create_index("ix_user_roles_expires_at", "user_roles", ["expires_at"])

    # --- routes (FK -> users) ---
    op.create_table(
        "routes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("transport_name", sa.String(255), nullable=False),
        sa.Column("status", content_status, nullable=False, server_default="active"),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_routes"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], name="fk_routes_created_by_users"),
    )
    op.create_index("ix_routes_created_by", "routes", ["created_by"])
    op.create_index("ix_routes_status", "routes", ["status"])

    # --- personalized_messages (FK -> routes, users) ---
    op.create_table(
        "personalized_messages",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", content_status, nullable=False, server_default="active"),
        sa.Column("route_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_personalized_messages"),
        sa.ForeignKeyConstraint(
            ["route_id"], ["routes.id"], name="fk_personalized_messages_route_id_routes",
        ),
        sa.ForeignKeyConstraint(
            ["created_by"], ["users.id"], name="fk_personalized_messages_created_by_users",
        ),
    )
    op.create_index("ix_personalized_messages_route_id", "personalized_messages", ["route_id"])
    op.create_index("ix_personalized_messages_created_by", "personalized_messages", ["created_by"])
    op.create_index("ix_personalized_messages_status", "personalized_messages", ["status"])

    # --- tourist_registrations (FK -> users) ---
    op.create_table(
        "tourist_registrations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("destination_place", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Numeric(10, 8), nullable=True),
        sa.Column("longitude", sa.Numeric(11, 8), nullable=True),
        sa.Column("status", content_status, nullable=False, server_default="active"),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_tourist_registrations"),
        sa.ForeignKeyConstraint(
            ["created_by"], ["users.id"], name="fk_tourist_registrations_created_by_users",
        ),
    )
    op.create_index(
        "ix_tourist_registrations_destination_place", "tourist_registrations", ["destination_place"]
    )
    op.create_index("ix_tourist_registrations_created_by", "tourist_registrations", ["created_by"])
    op.create_index("ix_tourist_registrations_status", "tourist_registrations", ["status"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table("tourist_registrations")
    op.drop_table("personalized_messages")
    op.drop_table("routes")
    op.drop_table("user_roles")
    op.drop_table("role_permissions")
    op.drop_table("roles")
    op.drop_table("permissions")
    op.drop_table("users")

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        postgresql.ENUM(name="content_status").drop(bind, checkfirst=True)
        postgresql.ENUM(name="legacy_role").drop(bind, checkfirst=True)
