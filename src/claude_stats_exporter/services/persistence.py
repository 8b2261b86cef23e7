"""Durable exporter state stored as JSON files in the Claude data directory."""

import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import orjson

from claude_stats_exporter.types.state import ActiveTimeState

logger = logging.getLogger(__name__)

ACTIVE_TIME_FILE = ".exporter-active-time.json"
SEEN_CONVERSATIONS_FILE = ".exporter-seen-conversations.json"


class PersistenceStore:
    """Two independent durable records: active time and seen conversation ids.

    Each record is read once at startup and rewritten wholesale after every
    mutation. Load failures fall back to empty state; save failures are
    logged and reported through the return value.
    """

    def __init__(self, state_dir: str | Path):
        self._state_dir = Path(state_dir)
        self._active_time_path = self._state_dir / ACTIVE_TIME_FILE
        self._seen_path = self._state_dir / SEEN_CONVERSATIONS_FILE

    @property
    def active_time_path(self) -> Path:
        return self._active_time_path

    @property
    def seen_path(self) -> Path:
        return self._seen_path

    # ------------------------------------------------------------------
    # Active time
    # ------------------------------------------------------------------

    def load_active_time(self) -> ActiveTimeState:
        raw = self._read(self._active_time_path)
        if not isinstance(raw, dict):
            return ActiveTimeState()

        cumulative = raw.get("cumulativeSeconds")
        if isinstance(cumulative, bool) or not isinstance(cumulative, (int, float)) or cumulative < 0:
            cumulative = 0
        last = raw.get("lastObservationTime")
        if isinstance(last, bool) or not isinstance(last, (int, float)):
            last = None

        state = ActiveTimeState(
            cumulative_seconds=int(cumulative),
            last_observation_time=float(last) if last is not None else None,
        )
        logger.info("Loaded cumulative active time: %ds", state.cumulative_seconds)
        return state

    def save_active_time(self, state: ActiveTimeState) -> bool:
        return self._write(self._active_time_path, {
            "cumulativeSeconds": state.cumulative_seconds,
            "lastObservationTime": state.last_observation_time,
        })

    # ------------------------------------------------------------------
    # Seen conversations
    # ------------------------------------------------------------------

    def load_seen_ids(self) -> set[str]:
        raw = self._read(self._seen_path)
        if not isinstance(raw, dict) or not isinstance(raw.get("ids"), list):
            return set()
        ids = {i for i in raw["ids"] if isinstance(i, str)}
        logger.info("Loaded %d seen conversation IDs", len(ids))
        return ids

    def save_seen_ids(self, ids: set[str]) -> bool:
        return self._write(self._seen_path, {
            "ids": sorted(ids),
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        })

    # ------------------------------------------------------------------
    # File I/O
    # ------------------------------------------------------------------

    def _read(self, path: Path):
        if not path.exists():
            return None
        try:
            return orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning("Could not load state from %s: %s", path, e)
            return None

    def _write(self, path: Path, data: dict) -> bool:
        """Atomically replace ``path`` so a crash never leaves a torn file."""
        tmp_name = None
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._state_dir, prefix=path.name, suffix=".tmp")
            with os.fdopen(fd, "wb") as f:
                f.write(orjson.dumps(data))
            os.replace(tmp_name, path)
            return True
        except OSError as e:
            logger.error("Failed to save state to %s: %s", path, e)
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False
