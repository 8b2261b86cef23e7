"""Usage snapshot value types."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TokenTotals:
    input: int = 0
    output: int = 0
    cache_read: int = 0
    cache_write: int = 0

    @property
    def total(self) -> int:
        return self.input + self.output + self.cache_read + self.cache_write


@dataclass(frozen=True)
class Snapshot:
    """Absolute cumulative usage totals as of read time."""

    session_count: int = 0
    message_count: int = 0
    tool_call_count: int = 0
    tokens_by_model: dict[str, TokenTotals] = field(default_factory=dict)
    cost_by_model: dict[str, float] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return sum(t.total for t in self.tokens_by_model.values())
