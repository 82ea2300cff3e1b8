"""Persistence layer for SQLite storage."""

from tradelog.persistence.base import BaseStorage
from tradelog.persistence.database import Database
from tradelog.persistence.repository import Repository

__all__ = ["BaseStorage", "Database", "Repository"]
