"""Reachability probe for remote database hosts.

This module opens a short-lived connection to a PostgreSQL server with
caller-supplied parameters, runs a trivial query against it, and closes
the connection again. Driver errors are translated into diagnostic
exceptions that can be shown to an administrator.
"""

import logging

import asyncpg
from pydantic import BaseModel, Field

from app.config import get_settings

logger = logging.getLogger(__name__)


class ProbeParams(BaseModel):
    """Connection parameters for a single reachability probe.

    Attributes:
        host: Database server hostname or IP address.
        port: Database server port.
        username: Database user for authentication.
        password: Plaintext password for authentication.
    """
    host: str = Field(..., description="Database server hostname or IP address")
    port: int = Field(default=5432, ge=1, le=65535, description="Database server port")
    username: str = Field(..., description="Database user for authentication")
    password: str = Field(default="", description="Plaintext password for authentication")


# Custom Exceptions for Database Connection Errors

class DatabaseConnectionError(Exception):
    """Base exception for database connection errors."""
    pass


class AuthenticationError(DatabaseConnectionError):
    """Raised when database authentication fails."""
    def __init__(self, message: str = "Authentication failed. Please check username and password."):
        super().__init__(message)


class HostUnreachableError(DatabaseConnectionError):
    """Raised when the database host cannot be reached."""
    def __init__(self, message: str = "Unable to connect to database host. Please verify the hostname and port."):
        super().__init__(message)


class DatabaseNotFoundError(DatabaseConnectionError):
    """Raised when the database used for probing does not exist."""
    def __init__(self, database_name: str):
        message = f"Database '{database_name}' not found on the server."
        super().__init__(message)
        self.database_name = database_name


class ConnectionTimeoutError(DatabaseConnectionError):
    """Raised when the connection times out."""
    def __init__(self, message: str = "Connection timed out. Please verify the host is reachable and try again."):
        super().__init__(message)


class ConnectionProbe:
    """Checks that a database host accepts a connection with given credentials.

    Every call to :meth:`check` opens its own connection and closes it
    before returning, whether the probe succeeded or not. No connection
    state is kept between calls.

    Usage:
        probe = ConnectionProbe(timeout=5.0)
        await probe.check(ProbeParams(host="db1", port=5432, username="admin", password="s3cret"))
    """

    def __init__(self, timeout: float = 5.0, database: str = "postgres"):
        self.timeout = timeout
        self.database = database

    async def check(self, params: ProbeParams) -> None:
        """Open a transient connection, run ``SELECT 1`` and close it.

        Args:
            params: Connection parameters of the host being validated.

        Raises:
            AuthenticationError: If username/password is invalid.
            HostUnreachableError: If the database host cannot be reached.
            DatabaseNotFoundError: If the probe database doesn't exist.
            ConnectionTimeoutError: If the connection times out.
            DatabaseConnectionError: For any other failure while probing.
        """
        connection = await self._open(params)
        try:
            await connection.fetchval("SELECT 1", timeout=self.timeout)
        except asyncpg.PostgresError as e:
            logger.error(f"Reachability query failed on {params.host}:{params.port}: {e}")
            raise DatabaseConnectionError(f"Database host rejected the test query: {e}")
        except asyncpg.InterfaceError as e:
            logger.error(f"Connection to {params.host}:{params.port} lost during test query: {e}")
            raise HostUnreachableError()
        except (TimeoutError, OSError) as e:
            raise _network_failure(e)
        finally:
            await connection.close()

        logger.info(f"Database host {params.host}:{params.port} is reachable")

    async def _open(self, params: ProbeParams) -> asyncpg.Connection:
        logger.info(
            f"Probing database host {params.host}:{params.port} as '{params.username}'"
        )

        try:
            return await asyncpg.connect(
                host=params.host,
                port=params.port,
                database=self.database,
                user=params.username,
                password=params.password,
                timeout=self.timeout,
            )

        except asyncpg.InvalidPasswordError:
            logger.error("Database authentication failed: invalid password")
            raise AuthenticationError()

        except asyncpg.InvalidAuthorizationSpecificationError:
            logger.error("Database authentication failed: invalid authorization")
            raise AuthenticationError()

        except asyncpg.InvalidCatalogNameError:
            logger.error(f"Database '{self.database}' not found")
            raise DatabaseNotFoundError(self.database)

        except asyncpg.PostgresConnectionError as e:
            logger.error(f"PostgreSQL connection error: {e}")
            raise HostUnreachableError()

        except (TimeoutError, OSError) as e:
            raise _network_failure(e)

        except Exception as e:
            logger.error(f"Unexpected error connecting to database: {e}")
            raise DatabaseConnectionError(f"Failed to connect to database host: {e}")


def get_connection_probe() -> ConnectionProbe:
    """Get a ConnectionProbe configured from application settings.

    This is a convenience function for dependency injection in FastAPI.
    """
    settings = get_settings()
    return ConnectionProbe(
        timeout=settings.probe_timeout_seconds,
        database=settings.probe_database,
    )


def _network_failure(e: Exception) -> DatabaseConnectionError:
    """Map a socket-level failure to a timeout or an unreachable host."""
    # OSError covers network-related errors like connection refused
    error_msg = str(e).lower()
    if isinstance(e, TimeoutError) or "timed out" in error_msg or "timeout" in error_msg:
        logger.error(f"Database connection timed out: {e}")
        return ConnectionTimeoutError()
    logger.error(f"Network error connecting to database: {e}")
    return HostUnreachableError()
