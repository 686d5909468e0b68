"""
Snapshot store for the shared storage deployment.
"""

from server.database.models import Base, RoomSnapshot
from server.database.repository import SnapshotRepository, snapshot_writer, watch_snapshots
from server.database.session import (
    close_db,
    create_tables,
    get_engine,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "RoomSnapshot",
    "SnapshotRepository",
    "snapshot_writer",
    "watch_snapshots",
    "init_db",
    "close_db",
    "session_scope",
    "create_tables",
    "get_engine",
]
