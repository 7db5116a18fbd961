"""Rank tables used to order tasks. Lower ranks sort first."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_STATUS_RANKS: dict[str, int] = {
    "in progress": 1,
    "ready": 2,
    "ready for prod": 2,
    "open": 3,
    "todo": 3,
    "qa": 4,
    "review": 5,
    "on hold": 6,
    "done": 7,
    "rejected": 8,
}
DEFAULT_STATUS_FALLBACK = 9

DEFAULT_PRIORITY_RANKS: dict[str, int] = {
    "blocker": 1,
    "critical": 2,
    "urgent": 3,
    "major": 4,
    "high": 5,
    "minor": 6,
    "low": 7,
    "trivial": 8,
}
DEFAULT_PRIORITY_FALLBACK = 9

DEFAULT_ISSUE_TYPE_RANKS: dict[str, int] = {
    "bug": 1,
    "devbug": 2,
    "story": 3,
    "task": 4,
    "sub-task": 5,
    "epic": 6,
}
DEFAULT_ISSUE_TYPE_FALLBACK = 7


@dataclass(frozen=True)
class RankTable:
    """Case-insensitive lookup of a rank with a fallback for unknown values."""

    ranks: dict[str, int]
    fallback: int

    def rank(self, value: str | None) -> int:
        if not value:
            return self.fallback
        return self.ranks.get(value.strip().lower(), self.fallback)

    @classmethod
    def from_mapping(cls, ranks: dict[str, int], fallback: int) -> RankTable:
        return cls(ranks={k.strip().lower(): v for k, v in ranks.items()}, fallback=fallback)


@dataclass(frozen=True)
class RankTables:
    """The three rank tables applied after visibility and sprint membership."""

    status: RankTable = field(
        default_factory=lambda: RankTable(DEFAULT_STATUS_RANKS, DEFAULT_STATUS_FALLBACK)
    )
    priority: RankTable = field(
        default_factory=lambda: RankTable(DEFAULT_PRIORITY_RANKS, DEFAULT_PRIORITY_FALLBACK)
    )
    issue_type: RankTable = field(
        default_factory=lambda: RankTable(DEFAULT_ISSUE_TYPE_RANKS, DEFAULT_ISSUE_TYPE_FALLBACK)
    )
