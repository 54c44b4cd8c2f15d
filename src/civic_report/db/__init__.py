"""Database configuration and utilities."""

from .session import SessionLocal, create_tables, drop_tables, get_db, make_engine

__all__ = ["get_db", "SessionLocal", "create_tables", "drop_tables", "make_engine"]
