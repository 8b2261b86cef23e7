"""Shared test helpers."""

import json
import os
from pathlib import Path

from claude_stats_exporter.types.metrics import GaugeReading


class RecordingSink:
    """MetricSink that keeps every counter add in memory."""

    def __init__(self):
        self.adds: list[tuple[str, int | float, dict]] = []
        self.gauge_provider = None
        self.shutdown_calls = 0

    def add_counter(self, name, value, labels):
        assert value >= 0, f"negative add to {name}: {value}"
        self.adds.append((name, value, dict(labels)))

    def register_gauges(self, provider):
        self.gauge_provider = provider

    def shutdown(self, timeout_millis=5000):
        self.shutdown_calls += 1
        return True

    def total(self, name, **labels) -> float:
        return sum(
            value for n, value, l in self.adds
            if n == name and all(l.get(k) == v for k, v in labels.items())
        )

    def names(self) -> list[str]:
        return [n for n, _, _ in self.adds]

    def clear(self):
        self.adds.clear()

    def gauge(self, name) -> list[GaugeReading]:
        return self.gauge_provider(name) if self.gauge_provider else []


def write_stats(data_dir: Path, sessions=0, messages=0, tool_calls=(), models=None):
    """Write a stats-cache.json in the shape Claude Code produces."""
    doc = {
        "totalSessions": sessions,
        "totalMessages": messages,
        "dailyActivity": [
            {"date": f"2026-01-{i + 1:02d}", "toolCallCount": n}
            for i, n in enumerate(tool_calls)
        ],
        "modelUsage": models or {},
    }
    (data_dir / "stats-cache.json").write_text(json.dumps(doc))


def model_usage(input=0, output=0, cache_read=0, cache_write=0, cost=0.0) -> dict:
    return {
        "inputTokens": input,
        "outputTokens": output,
        "cacheReadInputTokens": cache_read,
        "cacheCreationInputTokens": cache_write,
        "costUSD": cost,
    }


def touch_record(project_dir: Path, session_id: str, mtime: float | None = None) -> Path:
    path = project_dir / f"{session_id}.jsonl"
    if not path.exists():
        path.write_text('{"type": "user"}\n')
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def write_index(project_dir: Path, entries: list[dict]):
    (project_dir / "sessions-index.json").write_text(json.dumps({"version": 1, "entries": entries}))
