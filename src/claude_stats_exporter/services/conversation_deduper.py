"""Detection of newly appeared conversation record files."""

import logging
from collections.abc import Iterable

from claude_stats_exporter.services.persistence import PersistenceStore

logger = logging.getLogger(__name__)


class ConversationDeduper:
    """Tracks which conversation ids have already been counted.

    The seen-set only grows. Callers report a delta for the ids returned by
    find_new() and only then commit() them, so a crash in between leads to
    the ids being detected again rather than lost.
    """

    def __init__(self, store: PersistenceStore):
        self._store = store
        self._seen: set[str] = set()

    def load(self):
        self._seen = self._store.load_seen_ids()

    @property
    def seen_count(self) -> int:
        return len(self._seen)

    def is_seen(self, conversation_id: str) -> bool:
        return conversation_id in self._seen

    def find_new(self, ids_on_disk: Iterable[str]) -> set[str]:
        """Ids on disk that have not been committed yet. Does not mutate state."""
        return set(ids_on_disk) - self._seen

    def commit(self, new_ids: Iterable[str]) -> bool:
        """Add ids to the seen-set and persist it.

        Returns False only when a write was needed and failed; the in-memory
        set keeps the ids either way.
        """
        added = set(new_ids) - self._seen
        if not added:
            return True
        self._seen |= added
        return self._store.save_seen_ids(self._seen)
