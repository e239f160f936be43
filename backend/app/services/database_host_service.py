"""Database Host Service for registering remote database servers.

This module creates, updates and deletes database host records. Every
create and update is validated by connecting to the target host with the
supplied credentials before anything is written, passwords are encrypted
before they reach the panel database, and hosts that still carry
provisioned databases are protected from deletion.
"""

import logging
from typing import Any, List, Mapping, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.database_host import DatabaseHost
from app.models.server_database import ServerDatabase
from app.services.connection_probe import ConnectionProbe, ProbeParams
from app.services.encryption import Encrypter

logger = logging.getLogger(__name__)


# Fields that may be copied from request data onto an existing record.
# The password is handled separately and the id is never reassigned.
UPDATABLE_FIELDS = ("name", "host", "port", "username", "max_databases", "node_id")


class DatabaseHostNotFoundError(Exception):
    """Raised when no database host exists with the requested ID."""
    def __init__(self, host_id: UUID):
        super().__init__(f"Database host with ID '{host_id}' not found.")
        self.host_id = host_id


class DatabaseHostInUseError(Exception):
    """Raised when deleting a database host that still has databases attached."""
    def __init__(self, databases_count: int):
        super().__init__(
            "Cannot delete a database host that has active databases attached to it."
        )
        self.databases_count = databases_count


class PersistenceError(Exception):
    """Raised when the panel database rejects a write."""
    pass


class DatabaseHostService:
    """Service for managing database host records.

    The service is bound to the session of a single request. Writes are
    flushed but not committed; the request's session dependency commits
    them once the handler returns.

    Usage:
        service = DatabaseHostService(session, encrypter, probe)
        host = await service.create({"name": "db1", "host": "10.0.0.5", ...})
    """

    def __init__(self, session: AsyncSession, encrypter: Encrypter, probe: ConnectionProbe):
        self._session = session
        self._encrypter = encrypter
        self._probe = probe

    async def list_hosts(self) -> List[Tuple[DatabaseHost, int]]:
        """Return every database host with its number of attached databases."""
        databases_count = (
            select(func.count(ServerDatabase.id))
            .where(ServerDatabase.database_host_id == DatabaseHost.id)
            .correlate(DatabaseHost)
            .scalar_subquery()
        )
        result = await self._session.execute(
            select(DatabaseHost, databases_count.label("databases_count"))
            .order_by(DatabaseHost.created_at)
        )
        return [(host, count) for host, count in result.all()]

    async def get(self, host_id: UUID) -> Tuple[DatabaseHost, int]:
        """Return a database host and its number of attached databases.

        Raises:
            DatabaseHostNotFoundError: If the host does not exist.
        """
        host = await self._find_or_fail(host_id)
        return host, await self.count_databases(host.id)

    async def count_databases(self, host_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(ServerDatabase)
            .where(ServerDatabase.database_host_id == host_id)
        )
        return result.scalar_one()

    async def create(self, data: Mapping[str, Any]) -> DatabaseHost:
        """Create a new database host and persist it.

        ``max_databases`` always starts unset, whatever the input says.

        Args:
            data: ``name``, ``host``, ``port``, ``username``, ``password`` and ``node_id``.

        Returns:
            The persisted DatabaseHost.

        Raises:
            DatabaseConnectionError: If the host cannot be reached with the given credentials.
            PersistenceError: If the record cannot be written.
        """
        password = data.get("password") or ""

        host = DatabaseHost(
            name=data.get("name"),
            host=data.get("host"),
            port=data.get("port"),
            username=data.get("username"),
            max_databases=None,
            node_id=data.get("node_id"),
        )
        host.password = self._encrypter.encrypt(password)

        await self._probe.check(
            ProbeParams(host=host.host, port=host.port, username=host.username, password=password)
        )

        self._session.add(host)
        await self._flush(host)

        logger.info(f"Created database host '{host.name}' (ID: {host.id}) at {host.host}:{host.port}")
        return host

    async def update(self, host_id: UUID, data: Mapping[str, Any]) -> DatabaseHost:
        """Update a database host and persist it.

        A non-empty ``password`` replaces the stored ciphertext; a missing or
        empty one keeps it. The new connection parameters are probed before
        any field of the record is touched.

        Raises:
            DatabaseHostNotFoundError: If the host does not exist.
            DatabaseConnectionError: If the host cannot be reached with the new parameters.
            PersistenceError: If the record cannot be written.
        """
        host = await self._find_or_fail(host_id)

        changes = {field: data[field] for field in UPDATABLE_FIELDS if field in data}

        password = data.get("password")
        if password:
            changes["password"] = self._encrypter.encrypt(password)
        else:
            password = self._encrypter.decrypt(host.password)

        await self._probe.check(
            ProbeParams(
                host=changes.get("host", host.host),
                port=changes.get("port", host.port),
                username=changes.get("username", host.username),
                password=password,
            )
        )

        for field, value in changes.items():
            setattr(host, field, value)
        await self._flush(host)

        logger.info(
            f"Updated database host '{host.name}' (ID: {host.id}): "
            f"{', '.join(sorted(changes)) or 'no changes'}"
        )
        return host

    async def delete(self, host_id: UUID) -> bool:
        """Delete a database host if it has no active databases attached to it.

        The attachment count and the delete run in the request's transaction
        without a lock, so a database attached in between is only caught by
        the RESTRICT foreign key and surfaces as a PersistenceError.

        Raises:
            DatabaseHostNotFoundError: If the host does not exist.
            DatabaseHostInUseError: If one or more databases are attached.
            PersistenceError: If the record cannot be deleted.
        """
        host = await self._find_or_fail(host_id)

        databases_count = await self.count_databases(host.id)
        if databases_count > 0:
            logger.warning(
                f"Refusing to delete database host {host_id}: "
                f"{databases_count} database(s) attached"
            )
            raise DatabaseHostInUseError(databases_count)

        try:
            await self._session.delete(host)
            await self._session.flush()
        except SQLAlchemyError as e:
            await self._session.rollback()
            logger.error(f"Failed to delete database host {host_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete database host: {e}") from e

        logger.info(f"Deleted database host '{host.name}' (ID: {host_id})")
        return True

    async def _find_or_fail(self, host_id: UUID) -> DatabaseHost:
        host = await self._session.get(DatabaseHost, host_id)
        if host is None:
            raise DatabaseHostNotFoundError(host_id)
        return host

    async def _flush(self, host: DatabaseHost) -> None:
        try:
            await self._session.flush()
            await self._session.refresh(host)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save database host '{host.name}': {e}", exc_info=True)
            # Rolling back expunges a pending record and expires a modified one
            await self._session.rollback()
            raise PersistenceError(f"Failed to save database host: {e}") from e
