"""Conversion of absolute usage snapshots into counter increments."""

import logging

from claude_stats_exporter.types.metrics import (
    COST_USAGE,
    MESSAGE_COUNT,
    SESSION_COUNT,
    TOKEN_USAGE,
    TOOL_USAGE,
    Delta,
    MetricSink,
)
from claude_stats_exporter.types.snapshot import Snapshot, TokenTotals

logger = logging.getLogger(__name__)

# TokenTotals field -> "type" label value
TOKEN_TYPES = (
    ("input", "input"),
    ("output", "output"),
    ("cache_read", "cacheRead"),
    ("cache_write", "cacheCreation"),
)

_EMPTY_TOKENS = TokenTotals()


class DeltaReconciler:
    """Emits non-negative counter deltas between consecutive snapshots.

    The first snapshot of the process lifetime is emitted in full (backfill).
    After that only increases are emitted; a decrease is suppressed but still
    becomes the new reference, so a later recovery is reported from the lower
    value instead of being swallowed by a stale high-water mark.
    """

    def __init__(self, sink: MetricSink, instance_id: str):
        self._sink = sink
        self._instance_id = instance_id
        self._previous: Snapshot | None = None

    @property
    def initialized(self) -> bool:
        return self._previous is not None

    @property
    def previous(self) -> Snapshot | None:
        return self._previous

    def reconcile(self, snapshot: Snapshot) -> list[Delta]:
        """Compute, emit, and return the deltas for ``snapshot``."""
        if self._previous is None:
            deltas = self._diff(Snapshot(), snapshot)
            logger.info(
                "Backfilled: %d sessions, %d messages, %s tokens",
                snapshot.session_count, snapshot.message_count, f"{snapshot.total_tokens:,}",
            )
        else:
            deltas = self._diff(self._previous, snapshot)
            delta_tokens = sum(d.value for d in deltas if d.metric == TOKEN_USAGE)
            if delta_tokens > 0:
                logger.info("Delta: +%s tokens", f"{delta_tokens:,}")

        for delta in deltas:
            self._sink.add_counter(delta.metric, delta.value, delta.labels)

        self._previous = snapshot
        return deltas

    def _diff(self, old: Snapshot, new: Snapshot) -> list[Delta]:
        source = {"source": self._instance_id}
        deltas = []

        for metric, before, after in (
            (SESSION_COUNT, old.session_count, new.session_count),
            (MESSAGE_COUNT, old.message_count, new.message_count),
            (TOOL_USAGE, old.tool_call_count, new.tool_call_count),
        ):
            if after - before > 0:
                deltas.append(Delta(metric, after - before, dict(source)))

        # Models absent from the new snapshot are ignored, never decreased
        for model, tokens in new.tokens_by_model.items():
            prev = old.tokens_by_model.get(model, _EMPTY_TOKENS)
            for field_name, token_type in TOKEN_TYPES:
                diff = getattr(tokens, field_name) - getattr(prev, field_name)
                if diff > 0:
                    deltas.append(Delta(
                        TOKEN_USAGE, diff, {"type": token_type, "model": model, **source},
                    ))

        for model, cost in new.cost_by_model.items():
            diff = cost - old.cost_by_model.get(model, 0.0)
            if diff > 0:
                deltas.append(Delta(COST_USAGE, diff, {"model": model, **source}))

        return deltas
