"""Database models package for SQLAlchemy ORM.

This module exports all SQLAlchemy models used by the Database Host Panel.
"""

from app.models.database_host import DatabaseHost
from app.models.node import Node
from app.models.server_database import ServerDatabase
from app.models.user import User

__all__ = [
    "DatabaseHost",
    "Node",
    "ServerDatabase",
    "User",
]
