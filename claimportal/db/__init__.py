"""
Database module for the Claims Portal.

Exports database connection utilities.
"""

from claimportal.db.connection import (
    build_session_maker,
    check_db_connection,
    close_db_connection,
    get_engine,
    get_session,
    get_session_maker,
)

__all__ = [
    "build_session_maker",
    "get_engine",
    "get_session_maker",
    "get_session",
    "close_db_connection",
    "check_db_connection",
]
