"""Change ledger for kubemonitor.

Holds the in-memory change log, the index of already-seen resources, and the
JSON snapshot persistence that survives restarts.

Submodules:
    change_log       -- Bounded FIFO of ChangeRecords with copy-returning accessors.
    known_resources  -- resource_type -> namespace/name -> resourceVersion index.
    persistence      -- Whole-file JSON snapshot store.
    autosave         -- Periodic flush of the change log to the store.
    locks            -- Reader-writer lock used by the log and the index.
"""

from kubemonitor.ledger.autosave import AutoSaveScheduler
from kubemonitor.ledger.change_log import MAX_CHANGES, ChangeLog
from kubemonitor.ledger.known_resources import LOADED_SENTINEL, KnownResourceIndex, resource_key
from kubemonitor.ledger.persistence import (
    PersistenceError,
    SnapshotDecodeError,
    SnapshotIOError,
    SnapshotStore,
)

__all__ = [
    "LOADED_SENTINEL",
    "MAX_CHANGES",
    "AutoSaveScheduler",
    "ChangeLog",
    "KnownResourceIndex",
    "PersistenceError",
    "SnapshotDecodeError",
    "SnapshotIOError",
    "SnapshotStore",
    "resource_key",
]
