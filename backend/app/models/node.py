"""Node model for the daemons that own database hosts."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.database_host import DatabaseHost


class Node(Base):
    """SQLAlchemy model for nodes."""
    __tablename__ = "nodes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    fqdn: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    database_hosts: Mapped[List["DatabaseHost"]] = relationship(
        "DatabaseHost",
        back_populates="node",
        passive_deletes="all",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Node(id={self.id}, name='{self.name}', fqdn='{self.fqdn}')>"
