"""Services package for business logic components."""

from app.services.connection_probe import (
    AuthenticationError,
    ConnectionProbe,
    ConnectionTimeoutError,
    DatabaseConnectionError,
    DatabaseNotFoundError,
    HostUnreachableError,
    ProbeParams,
    get_connection_probe,
)
from app.services.database_host_service import (
    DatabaseHostInUseError,
    DatabaseHostNotFoundError,
    DatabaseHostService,
    PersistenceError,
)
from app.services.encryption import DecryptionError, Encrypter, get_encrypter

__all__ = [
    "AuthenticationError",
    "ConnectionProbe",
    "ConnectionTimeoutError",
    "DatabaseConnectionError",
    "DatabaseNotFoundError",
    "HostUnreachableError",
    "ProbeParams",
    "get_connection_probe",
    "DatabaseHostInUseError",
    "DatabaseHostNotFoundError",
    "DatabaseHostService",
    "PersistenceError",
    "DecryptionError",
    "Encrypter",
    "get_encrypter",
]
