"""Recall database layer."""

from recall.db.connection import Database
from recall.db.migrations import MIGRATIONS, run_migrations
from recall.db.repository import Repository
from recall.db.schema import initialize
from recall.db.vectors import VEC_TABLE, ensure_vec_table

__all__ = [
    "Database",
    "Repository",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "VEC_TABLE",
]
