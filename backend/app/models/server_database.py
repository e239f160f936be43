"""ServerDatabase model for databases provisioned on a database host."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.database_host import DatabaseHost


class ServerDatabase(Base):
    """SQLAlchemy model for provisioned databases.

    A database host cannot be removed while any of these rows point at it.
    """
    __tablename__ = "databases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    database_host_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("database_hosts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    database: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )
    remote: Mapped[str] = mapped_column(
        String(255),
        default="%",
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    host: Mapped["DatabaseHost"] = relationship(
        "DatabaseHost",
        back_populates="databases",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<ServerDatabase(id={self.id}, database='{self.database}', host_id={self.database_host_id})>"
