"""Database host management API routes.

This module provides FastAPI endpoints for managing database hosts:
- List and inspect registered database hosts
- Register a new host after testing its credentials
- Update a host, re-testing the connection
- Remove a host that has no databases attached

Every route on this router is restricted to administrators.
"""

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies.auth import require_admin
from app.models.database_host import DatabaseHost
from app.services.connection_probe import (
    ConnectionProbe,
    ConnectionTimeoutError,
    DatabaseConnectionError,
    get_connection_probe,
)
from app.services.database_host_service import (
    DatabaseHostInUseError,
    DatabaseHostNotFoundError,
    DatabaseHostService,
    PersistenceError,
)
from app.services.encryption import DecryptionError, Encrypter, get_encrypter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/application/database-hosts",
    tags=["Database Hosts"],
    dependencies=[Depends(require_admin)],
)


def get_database_host_service(
    db: AsyncSession = Depends(get_db),
    encrypter: Encrypter = Depends(get_encrypter),
    probe: ConnectionProbe = Depends(get_connection_probe),
) -> DatabaseHostService:
    """Build a DatabaseHostService bound to the request's session."""
    return DatabaseHostService(db, encrypter, probe)


# Pydantic Request/Response Models

class DatabaseHostCreateRequest(BaseModel):
    """Request model for registering a database host."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name of the host")
    host: str = Field(..., min_length=1, max_length=255, description="Hostname or IP address")
    port: int = Field(default=5432, ge=1, le=65535, description="Database server port")
    username: str = Field(..., min_length=1, max_length=255, description="Administrative database user")
    password: str = Field(..., description="Password for the administrative user")
    node_id: UUID = Field(..., description="Node that owns this host")


class DatabaseHostUpdateRequest(BaseModel):
    """Request model for updating a database host.

    Omitted fields are left unchanged. An omitted or empty password keeps
    the stored one.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    host: Optional[str] = Field(None, min_length=1, max_length=255)
    port: Optional[int] = Field(None, ge=1, le=65535)
    username: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, description="New password, leave empty to keep the current one")
    max_databases: Optional[int] = Field(None, ge=0, description="Limit of databases on this host, null for unlimited")
    node_id: Optional[UUID] = None


class DatabaseHostResponse(BaseModel):
    """Response model for a database host. Credentials are never returned."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    host: str
    port: int
    username: str
    max_databases: Optional[int] = None
    node_id: UUID
    databases_count: int = 0
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    """Response model for error messages."""

    detail: str


def _to_response(host: DatabaseHost, databases_count: int = 0) -> DatabaseHostResponse:
    return DatabaseHostResponse(
        id=host.id,
        name=host.name,
        host=host.host,
        port=host.port,
        username=host.username,
        max_databases=host.max_databases,
        node_id=host.node_id,
        databases_count=databases_count,
        created_at=host.created_at,
        updated_at=host.updated_at,
    )


def _connection_failed(e: DatabaseConnectionError) -> HTTPException:
    logger.warning(f"Database host connection test failed: {e}")
    if isinstance(e, ConnectionTimeoutError):
        return HTTPException(status_code=status.HTTP_408_REQUEST_TIMEOUT, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


def _not_found(e: DatabaseHostNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _save_failed(e: PersistenceError) -> HTTPException:
    logger.error(f"Database host persistence failure: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred while saving the database host.",
    )


# API Endpoints

@router.get(
    "",
    response_model=List[DatabaseHostResponse],
    summary="List database hosts",
    description="Retrieve all registered database hosts with their attached database counts.",
)
async def list_database_hosts(
    service: DatabaseHostService = Depends(get_database_host_service),
) -> List[DatabaseHostResponse]:
    hosts = await service.list_hosts()
    return [_to_response(host, count) for host, count in hosts]


@router.get(
    "/{host_id}",
    response_model=DatabaseHostResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Database host not found"},
    },
    summary="Get database host details",
)
async def get_database_host(
    host_id: UUID,
    service: DatabaseHostService = Depends(get_database_host_service),
) -> DatabaseHostResponse:
    """Get a specific database host by ID.

    Raises:
        HTTPException: 404 if the host does not exist
    """
    try:
        host, databases_count = await service.get(host_id)
    except DatabaseHostNotFoundError as e:
        raise _not_found(e)

    return _to_response(host, databases_count)


@router.post(
    "",
    response_model=DatabaseHostResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Connection to the host failed"},
        408: {"model": ErrorResponse, "description": "Connection timeout"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Register a database host",
    description="Test the connection to a database server and register it if the test succeeds.",
)
async def create_database_host(
    request: DatabaseHostCreateRequest,
    service: DatabaseHostService = Depends(get_database_host_service),
) -> DatabaseHostResponse:
    """Register a new database host.

    This endpoint:
    1. Encrypts the supplied password
    2. Connects to the host with the supplied credentials
    3. Saves the host if the connection test succeeded

    Raises:
        HTTPException: 400/408 if the host cannot be reached, 500 if saving fails
    """
    try:
        host = await service.create(request.model_dump())
    except DatabaseConnectionError as e:
        raise _connection_failed(e)
    except PersistenceError as e:
        raise _save_failed(e)

    return _to_response(host)


@router.patch(
    "/{host_id}",
    response_model=DatabaseHostResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Connection failed or stored password unreadable"},
        404: {"model": ErrorResponse, "description": "Database host not found"},
        408: {"model": ErrorResponse, "description": "Connection timeout"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Update a database host",
    description="Update a database host. The connection is tested again before the change is saved.",
)
async def update_database_host(
    host_id: UUID,
    update_data: DatabaseHostUpdateRequest,
    service: DatabaseHostService = Depends(get_database_host_service),
) -> DatabaseHostResponse:
    # Only max_databases may be cleared with an explicit null
    data = {
        field: value
        for field, value in update_data.model_dump(exclude_unset=True).items()
        if value is not None or field == "max_databases"
    }

    try:
        host = await service.update(host_id, data)
        databases_count = await service.count_databases(host.id)
    except DatabaseHostNotFoundError as e:
        raise _not_found(e)
    except DatabaseConnectionError as e:
        raise _connection_failed(e)
    except DecryptionError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{e} Supply a new password to replace it.",
        )
    except PersistenceError as e:
        raise _save_failed(e)

    return _to_response(host, databases_count)


@router.delete(
    "/{host_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ErrorResponse, "description": "Database host not found"},
        409: {"model": ErrorResponse, "description": "Databases are still attached to the host"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Delete a database host",
    description="Delete a database host. Hosts with attached databases cannot be deleted.",
)
async def delete_database_host(
    host_id: UUID,
    service: DatabaseHostService = Depends(get_database_host_service),
) -> Response:
    try:
        await service.delete(host_id)
    except DatabaseHostNotFoundError as e:
        raise _not_found(e)
    except DatabaseHostInUseError as e:
        logger.warning(f"Delete of database host {host_id} rejected: {e}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        raise _save_failed(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)
