"""Index of every resource the monitor has already seen.

Maps ``resource_type -> {"namespace/name": resourceVersion}``. Entries are
never removed, even after a DELETED event, so a replayed ADDED for an object
seen earlier in the process lifetime is still recognised.
"""

from __future__ import annotations

from collections.abc import Iterable

from kubemonitor.ledger.locks import ReadWriteLock
from kubemonitor.models.changes import ChangeRecord

# Version recorded for objects reconstructed from a persisted snapshot, which
# does not carry resource versions.
LOADED_SENTINEL = "loaded"


def resource_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}"


class KnownResourceIndex:
    """Thread-safe ``(resource_type, namespace/name) -> version`` map."""

    def __init__(self, resource_types: Iterable[str] = ()) -> None:
        self._known: dict[str, dict[str, str]] = {rt: {} for rt in resource_types}
        self._lock = ReadWriteLock()

    def observe(self, resource_type: str, key: str, version: str) -> tuple[str, bool]:
        """Record *version* for *key* and return what was there before.

        The read and the write happen under one exclusive acquisition so two
        concurrent observations of the same key cannot both see it as new.

        Returns:
            ``(prior_version, existed)``; ``prior_version`` is ``""`` when
            the key was not known.
        """
        with self._lock.write():
            bucket = self._known.setdefault(resource_type, {})
            existed = key in bucket
            prior = bucket.get(key, "")
            bucket[key] = version
        return prior, existed

    def mark_known(self, resource_type: str, key: str, version: str = LOADED_SENTINEL) -> None:
        with self._lock.write():
            self._known.setdefault(resource_type, {})[key] = version

    def populate_from_changes(self, records: Iterable[ChangeRecord]) -> int:
        """Mark every object named in *records* as known with the sentinel.

        Returns the number of records processed.
        """
        count = 0
        with self._lock.write():
            for record in records:
                bucket = self._known.setdefault(record.resource_type, {})
                bucket[resource_key(record.namespace, record.name)] = LOADED_SENTINEL
                count += 1
        return count

    def populate_from_listing(self, resource_type: str, versions: dict[str, str]) -> None:
        """Record true versions from a live listing; supersedes the sentinel."""
        with self._lock.write():
            self._known.setdefault(resource_type, {}).update(versions)

    def get(self, resource_type: str, key: str) -> str | None:
        with self._lock.read():
            return self._known.get(resource_type, {}).get(key)

    def count(self, resource_type: str | None = None) -> int:
        with self._lock.read():
            if resource_type is not None:
                return len(self._known.get(resource_type, {}))
            return sum(len(bucket) for bucket in self._known.values())
