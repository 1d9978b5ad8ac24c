"""SQLAlchemy table definitions owned by Name Registry Service."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKeyConstraint,
    Integer,
    LargeBinary,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    func,
)

from services.state.name_registry.domain import IDENTITY_MAX_LENGTH

metadata = MetaData()

registry_namespaces = Table(
    "registry_namespaces",
    metadata,
    Column("namespace", String(64), primary_key=True),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
)

registry_nodes = Table(
    "registry_nodes",
    metadata,
    Column("namespace", String(64), nullable=False),
    Column("digest", LargeBinary(32), nullable=False),
    Column("owner", String(IDENTITY_MAX_LENGTH), nullable=False),
    Column("parent_digest", LargeBinary(32), nullable=False),
    Column("resolved_target", String(IDENTITY_MAX_LENGTH), nullable=True),
    Column("depth", Integer, nullable=False, server_default="0"),
    Column(
        "created_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    ),
    Column(
        "updated_at",
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    ),
    PrimaryKeyConstraint("namespace", "digest", name="pk_registry_nodes"),
    ForeignKeyConstraint(
        ["namespace"],
        ["registry_namespaces.namespace"],
        name="fk_registry_nodes_namespace",
    ),
    CheckConstraint("owner <> ''", name="ck_registry_nodes_owner_nonempty"),
    CheckConstraint("depth >= 0", name="ck_registry_nodes_depth_nonnegative"),
)
