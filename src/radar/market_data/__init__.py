"""Market data assembly: per-symbol snapshots and the rotating symbol universe."""

from radar.market_data.snapshot import SnapshotBuilder
from radar.market_data.universe import SymbolUniverse, is_eligible, select_universe

__all__ = [
    "SnapshotBuilder",
    "SymbolUniverse",
    "is_eligible",
    "select_universe",
]
