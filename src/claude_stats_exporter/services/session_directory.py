"""Discovery of Claude projects, their session index and record files."""

import logging
from pathlib import Path

import orjson

from claude_stats_exporter.types.sessions import IndexEntry, ProjectListing, RecordFile

logger = logging.getLogger(__name__)

PROJECTS_DIR = "projects"
SESSION_INDEX_FILE = "sessions-index.json"
RECORD_SUFFIX = ".jsonl"


def read_projects(data_dir: str | Path) -> list[ProjectListing]:
    """List every project under ``<data_dir>/projects``.

    A missing or unreadable root yields an empty list. A project that cannot
    be read is skipped without affecting the others.
    """
    projects_root = Path(data_dir) / PROJECTS_DIR
    if not projects_root.is_dir():
        logger.debug("Projects root does not exist: %s", projects_root)
        return []

    try:
        entries = sorted(projects_root.iterdir())
    except OSError as e:
        logger.error("Error scanning projects root %s: %s", projects_root, e)
        return []

    listings = []
    for entry in entries:
        try:
            if not entry.is_dir():
                continue
            records = _read_records(entry)
            index = read_session_index(entry)
        except OSError as e:
            logger.debug("Skipping unreadable project %s: %s", entry.name, e)
            continue
        listings.append(ProjectListing(id=entry.name, records=records, index=index))
    return listings


def _read_records(project_dir: Path) -> list[RecordFile]:
    """Record files directly in the project directory (not subdirs)."""
    records = []
    for path in sorted(project_dir.glob(f"*{RECORD_SUFFIX}")):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            # Removed between listing and stat
            continue
        records.append(RecordFile(name=path.name, mtime=mtime))
    return records


def read_session_index(project_dir: str | Path) -> dict[str, IndexEntry]:
    """Parse ``sessions-index.json`` into entries keyed by session id.

    The index is optional metadata; any problem reading it yields {}.
    """
    path = Path(project_dir) / SESSION_INDEX_FILE
    if not path.exists():
        return {}

    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.debug("Session index unreadable at %s: %s", path, e)
        return {}

    entries = raw.get("entries") if isinstance(raw, dict) else None
    if not isinstance(entries, list):
        return {}

    index = {}
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        session_id = entry.get("sessionId")
        if not isinstance(session_id, str) or not session_id:
            continue
        message_count = entry.get("messageCount")
        index[session_id] = IndexEntry(
            session_id=session_id,
            first_prompt=_text(entry.get("firstPrompt")),
            project_path=_text(entry.get("projectPath")),
            message_count=message_count if isinstance(message_count, int) and message_count > 0 else 0,
        )
    return index


def _text(value) -> str:
    return value if isinstance(value, str) else ""
