"""Database modules"""

from shokulab.db.base import DatabaseInterface
from shokulab.db.supabase import get_database

__all__ = [
    "DatabaseInterface",
    "get_database",
]
