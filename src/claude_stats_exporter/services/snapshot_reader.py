"""Reader for the Claude Code ``stats-cache.json`` usage snapshot."""

import logging
from pathlib import Path

import orjson

from claude_stats_exporter.types.snapshot import Snapshot, TokenTotals

logger = logging.getLogger(__name__)

STATS_CACHE_FILE = "stats-cache.json"


def read_snapshot(data_dir: str | Path) -> Snapshot | None:
    """Read and parse the stats cache under ``data_dir``.

    Returns None when the file is missing, unreadable, or not a JSON object.
    Individual fields with an unexpected shape default to zero.
    """
    path = Path(data_dir) / STATS_CACHE_FILE
    if not path.exists():
        logger.info("Stats file not found: %s", path)
        return None

    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.error("Error reading stats cache %s: %s", path, e)
        return None

    if not isinstance(raw, dict):
        logger.warning("Stats cache %s is not a JSON object, ignoring", path)
        return None

    return parse_snapshot(raw)


def parse_snapshot(raw: dict) -> Snapshot:
    """Build a Snapshot from the decoded stats cache document."""
    tool_calls = 0
    daily = raw.get("dailyActivity")
    if isinstance(daily, list):
        for day in daily:
            if isinstance(day, dict):
                tool_calls += _count(day.get("toolCallCount"))

    tokens: dict[str, TokenTotals] = {}
    costs: dict[str, float] = {}
    usage_by_model = raw.get("modelUsage")
    if isinstance(usage_by_model, dict):
        for model, usage in usage_by_model.items():
            if not isinstance(usage, dict):
                logger.debug("Skipping malformed usage entry for model %s", model)
                continue
            tokens[model] = TokenTotals(
                input=_count(usage.get("inputTokens")),
                output=_count(usage.get("outputTokens")),
                cache_read=_count(usage.get("cacheReadInputTokens")),
                cache_write=_count(usage.get("cacheCreationInputTokens")),
            )
            cost = _amount(usage.get("costUSD"))
            if cost > 0:
                costs[model] = cost

    return Snapshot(
        session_count=_count(raw.get("totalSessions")),
        message_count=_count(raw.get("totalMessages")),
        tool_call_count=tool_calls,
        tokens_by_model=tokens,
        cost_by_model=costs,
    )


def _count(value) -> int:
    # bool is an int subclass; a flag is not a count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(int(value), 0)


def _amount(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return max(float(value), 0.0)
