"""
Database-backed storage collaborators.
"""

from .sql_storage import SqlAlchemyCatalogStorage

__all__ = ["SqlAlchemyCatalogStorage"]
