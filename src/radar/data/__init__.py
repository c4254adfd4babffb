"""Signal persistence: SQLite connection manager and typed store."""

from radar.data.database import SignalDatabase
from radar.data.store import SignalStore

__all__ = ["SignalDatabase", "SignalStore"]
