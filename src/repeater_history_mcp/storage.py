# ABOUTME: Append-only history of captured exchanges grouped by tab key
# ABOUTME: Thread-safe with one lock per tab so unrelated tabs never contend

import itertools
from threading import Lock
from typing import Optional

from .models import EventRecord


class _TabHistory:
    """Ordered records for one tab, guarded by its own lock."""

    __slots__ = ("lock", "records")

    def __init__(self):
        self.lock = Lock()
        # (sequence, record) so snapshot_all can restore global capture order
        self.records: list[tuple[int, EventRecord]] = []


class TabHistoryStore:
    """Thread-safe, append-only storage for captured traffic, keyed by tab."""

    def __init__(self):
        self._tabs: dict[str, _TabHistory] = {}
        self._tabs_lock = Lock()
        self._sequence = itertools.count()

    def __len__(self) -> int:
        total = 0
        for tab in self._tab_list():
            with tab.lock:
                total += len(tab.records)
        return total

    def _tab(self, key: str) -> Optional[_TabHistory]:
        with self._tabs_lock:
            return self._tabs.get(key)

    def _tab_list(self) -> list[_TabHistory]:
        with self._tabs_lock:
            return list(self._tabs.values())

    def append(self, key: str, record: EventRecord) -> None:
        """Add a record to the end of a tab's history, creating the tab if needed."""
        with self._tabs_lock:
            tab = self._tabs.get(key)
            if tab is None:
                tab = self._tabs[key] = _TabHistory()

        with tab.lock:
            tab.records.append((next(self._sequence), record))

    def snapshot(self, key: str) -> list[EventRecord]:
        """
        Copy a tab's history in capture order.

        The returned list is independent of the store: records appended
        after this call returns never show up in it.

        Args:
            key: Tab key from derive_key

        Returns:
            The tab's records, or an empty list for an unknown tab
        """
        tab = self._tab(key)
        if tab is None:
            return []
        with tab.lock:
            return [record for _, record in tab.records]

    def snapshot_all(self) -> list[EventRecord]:
        """Copy every tab's history, merged into global capture order."""
        entries: list[tuple[int, EventRecord]] = []
        # One tab lock at a time
        for tab in self._tab_list():
            with tab.lock:
                entries.extend(tab.records)
        entries.sort(key=lambda entry: entry[0])
        return [record for _, record in entries]

    def count(self, key: str) -> int:
        """Number of records captured for a tab."""
        tab = self._tab(key)
        if tab is None:
            return 0
        with tab.lock:
            return len(tab.records)

    def keys(self) -> set[str]:
        """All tab keys seen so far."""
        with self._tabs_lock:
            return set(self._tabs)
