"""Estado en memoria entre ciclos."""
from stockwatch.application.state.snapshot_state import SnapshotHistory, SnapshotStore

__all__ = ["SnapshotHistory", "SnapshotStore"]
