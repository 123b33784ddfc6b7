"""Binary-insertion ranking engine.

Ranks items from a series of two-way preference answers. Each new
candidate is binary-searched into the already ordered items, so N items
need O(N log N) answers.

All functions are pure: they take a session and return a new outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Sequence

from .session import (
    Active,
    Complete,
    InsufficientItems,
    Outcome,
    RankingSession,
    SessionMode,
    check_session,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComparisonPair:
    """The two items the user is asked to choose between."""
    candidate: str
    reference: str


@dataclass(frozen=True)
class Progress:
    """How far a session has advanced."""
    processed: int
    total: int
    percent: int


def begin_full_ranking(items: Sequence[str]) -> RankingSession:
    """Start ranking a whole item set from scratch.

    Args:
        items: Item identifiers in presentation order

    Returns:
        New session comparing ``items[1]`` against ``items[0]``

    Raises:
        InsufficientItems: If fewer than two items are given
    """
    items = tuple(items)
    if len(items) < 2:
        raise InsufficientItems(
            f"Need at least 2 items to rank, got {len(items)}"
        )

    logger.debug("Starting full ranking of %d items", len(items))
    return RankingSession(
        ordered=items[:1],
        pending=items[2:],
        candidate=items[1],
        low=0,
        high=0,
        mode=SessionMode.FULL,
    )


def begin_partial_ranking(
    existing_order: Sequence[str],
    new_items: Sequence[str]
) -> RankingSession:
    """Start inserting new items into an already ranked order.

    The relative order of ``existing_order`` is kept; existing items are
    never compared against each other again.

    Args:
        existing_order: Finalized ranking, most preferred first
        new_items: Item identifiers to insert, in insertion order

    Returns:
        New session

    Raises:
        InsufficientItems: If there are no new items, or no existing order
            and fewer than two new items
    """
    new_items = tuple(new_items)
    if not new_items:
        raise InsufficientItems("No new items to insert")

    if not existing_order:
        # Nothing to insert into: sort the new items on their own
        return begin_full_ranking(new_items)

    ordered = tuple(existing_order)
    logger.debug(
        "Starting partial ranking: %d new items into %d ranked",
        len(new_items), len(ordered)
    )
    return RankingSession(
        ordered=ordered,
        pending=new_items[1:],
        candidate=new_items[0],
        low=0,
        high=len(ordered) - 1,
        mode=SessionMode.PARTIAL,
    )


def apply_comparison(session: RankingSession, candidate_preferred: bool) -> Outcome:
    """Consume one answer and advance the sort.

    Args:
        session: Active session
        candidate_preferred: True if the candidate beat the reference item

    Returns:
        ``Active`` with the next session, or ``Complete`` with the final order

    Raises:
        InvalidTransition: If ``session`` is not an active session
    """
    check_session(session)

    mid = session.mid
    low, high = session.low, session.high
    if candidate_preferred:
        high = mid - 1
    else:
        low = mid + 1

    if low <= high:
        return Active(RankingSession(
            ordered=session.ordered,
            pending=session.pending,
            candidate=session.candidate,
            low=low,
            high=high,
            mode=session.mode,
        ))

    # Window exhausted: the candidate's slot is ``low``
    ordered = session.ordered[:low] + (session.candidate,) + session.ordered[low:]
    logger.debug("Placed %r at position %d", session.candidate, low)

    if not session.pending:
        logger.debug("Ranking complete with %d items", len(ordered))
        return Complete(ordered)

    return Active(RankingSession(
        ordered=ordered,
        pending=session.pending[1:],
        candidate=session.pending[0],
        low=0,
        high=len(ordered) - 1,
        mode=session.mode,
    ))


def current_comparison_pair(session: RankingSession) -> ComparisonPair:
    """Get the candidate and the reference item it is compared against.

    Raises:
        InvalidTransition: If ``session`` is not an active session
    """
    check_session(session)
    return ComparisonPair(
        candidate=session.candidate,
        reference=session.ordered[session.mid],
    )


def progress(session: RankingSession, total_items: int) -> Progress:
    """Get progress information for a session.

    The candidate currently being placed counts as processed.

    Args:
        session: Active session
        total_items: Number of items across the whole session

    Returns:
        Processed count and rounded percentage

    Raises:
        InvalidTransition: If ``session`` is not an active session
        ValueError: If ``total_items`` is not positive
    """
    check_session(session)
    if total_items <= 0:
        raise ValueError(f"total_items must be positive, got {total_items}")

    processed = len(session.ordered) + 1
    # Python's round() is banker's rounding; ranking progress rounds half up
    percent = int(processed / total_items * 100 + 0.5)
    return Progress(processed=processed, total=total_items, percent=percent)


def unplaced(session: RankingSession) -> tuple[str, ...]:
    """Items not yet in ``ordered``: the candidate, then the pending queue."""
    return (session.candidate,) + session.pending


def session_size(session: RankingSession) -> int:
    """Total number of items the session is ranking."""
    return len(session.ordered) + 1 + len(session.pending)


def rank_with(
    items: Sequence[str],
    prefer: Callable[[str, str], bool]
) -> tuple[str, ...]:
    """Rank ``items`` by asking ``prefer(candidate, reference)`` for each step.

    Convenience driver for programmatic use; ``prefer`` returns True when
    the candidate should rank above the reference.

    Returns:
        Final order, most preferred first
    """
    items = tuple(items)
    if len(items) < 2:
        return items

    outcome: Outcome = Active(begin_full_ranking(items))
    while isinstance(outcome, Active):
        pair = current_comparison_pair(outcome.session)
        outcome = apply_comparison(
            outcome.session, bool(prefer(pair.candidate, pair.reference))
        )
    return outcome.ordered
