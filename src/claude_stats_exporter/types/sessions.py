"""Session directory and active session types."""

from dataclasses import dataclass, field

from claude_stats_exporter.utils.path_codec import make_record_id


@dataclass(frozen=True)
class IndexEntry:
    session_id: str
    first_prompt: str = ""
    project_path: str = ""
    message_count: int = 0


@dataclass(frozen=True)
class RecordFile:
    name: str        # e.g. "3f2a....jsonl"
    mtime: float     # epoch seconds

    @property
    def session_id(self) -> str:
        return self.name[: -len(".jsonl")] if self.name.endswith(".jsonl") else self.name


@dataclass(frozen=True)
class ProjectListing:
    id: str          # Encoded directory name
    records: list[RecordFile] = field(default_factory=list)
    index: dict[str, IndexEntry] = field(default_factory=dict)

    def record_ids(self) -> set[str]:
        return {make_record_id(self.id, r.name) for r in self.records}


@dataclass(frozen=True)
class ActiveSession:
    id: str
    title: str
    project_path: str
    last_modified: float
    message_count: int = 0
