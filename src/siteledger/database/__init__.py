"""Persistence layer for siteledger."""

from siteledger.database.base import Database
from siteledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
