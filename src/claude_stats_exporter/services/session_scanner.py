"""Active session detection from record file modification times."""

import logging
import time
from pathlib import Path

from claude_stats_exporter.services.session_directory import read_projects
from claude_stats_exporter.types.sessions import ActiveSession, ProjectListing
from claude_stats_exporter.utils.path_codec import decode_project_dir

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100


class ActiveSessionScanner:
    """Finds sessions whose record file was written within a recency window.

    The file mtime decides activity; the per-project session index only
    supplies title, project path and message count.
    """

    def __init__(self, data_dir: str | Path):
        self._data_dir = Path(data_dir)

    def scan(
        self,
        window_seconds: float,
        now: float | None = None,
        listings: list[ProjectListing] | None = None,
    ) -> list[ActiveSession]:
        """Return active sessions, most recently modified first.

        ``listings`` lets the caller share one directory pass per poll;
        when omitted the data directory is read fresh.
        """
        if now is None:
            now = time.time()
        if listings is None:
            listings = read_projects(self._data_dir)
        cutoff = now - window_seconds

        sessions = []
        for project in listings:
            try:
                sessions.extend(self._active_in_project(project, cutoff))
            except Exception:
                logger.exception("Failed to scan project %s for active sessions", project.id)

        sessions.sort(key=lambda s: (-s.last_modified, s.id))
        return sessions

    def _active_in_project(self, project: ProjectListing, cutoff: float) -> list[ActiveSession]:
        active = []
        for record in project.records:
            if record.mtime <= cutoff:
                continue
            entry = project.index.get(record.session_id)
            if entry is None:
                active.append(ActiveSession(
                    id=record.session_id,
                    title="",
                    project_path=decode_project_dir(project.id),
                    last_modified=record.mtime,
                ))
                continue
            active.append(ActiveSession(
                id=record.session_id,
                title=entry.first_prompt[:MAX_TITLE_LENGTH],
                project_path=entry.project_path or decode_project_dir(project.id),
                last_modified=record.mtime,
                message_count=entry.message_count,
            ))
        return active
