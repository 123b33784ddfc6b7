"""Binary-insertion ranking engine."""

from .ranker import (
    ComparisonPair,
    Progress,
    apply_comparison,
    begin_full_ranking,
    begin_partial_ranking,
    current_comparison_pair,
    progress,
    rank_with,
    session_size,
    unplaced,
)
from .session import (
    Active,
    Complete,
    InsufficientItems,
    InvalidTransition,
    Outcome,
    RankingError,
    RankingSession,
    SessionMode,
)

__all__ = [
    "Active",
    "Complete",
    "ComparisonPair",
    "InsufficientItems",
    "InvalidTransition",
    "Outcome",
    "Progress",
    "RankingError",
    "RankingSession",
    "SessionMode",
    "apply_comparison",
    "begin_full_ranking",
    "begin_partial_ranking",
    "current_comparison_pair",
    "progress",
    "rank_with",
    "session_size",
    "unplaced",
]
