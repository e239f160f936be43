"""DatabaseHost model for registered remote database servers."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.node import Node
    from app.models.server_database import ServerDatabase


class DatabaseHost(Base):
    """SQLAlchemy model for database hosts.

    A database host is a remote database server on which databases are
    provisioned for servers. ``password`` always holds Fernet ciphertext;
    the plaintext only exists while a create or update call is running.
    """
    __tablename__ = "database_hosts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    host: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    port: Mapped[int] = mapped_column(
        Integer,
        default=5432,
        nullable=False,
    )
    username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    password: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    max_databases: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    node_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("nodes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    node: Mapped["Node"] = relationship(
        "Node",
        back_populates="database_hosts",
        lazy="raise",
    )
    databases: Mapped[List["ServerDatabase"]] = relationship(
        "ServerDatabase",
        back_populates="host",
        passive_deletes="all",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<DatabaseHost(id={self.id}, name='{self.name}', host='{self.host}:{self.port}')>"
