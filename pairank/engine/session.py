"""Ranking session state and transition outcomes.

A session is an immutable snapshot of an in-progress binary-insertion sort.
Transitions never modify a session; they build the next one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class RankingError(Exception):
    """Base class for ranking engine errors."""


class InsufficientItems(RankingError):
    """Raised when there is nothing meaningful to rank."""


class InvalidTransition(RankingError):
    """Raised when an operation is applied to a non-active or malformed session."""


class SessionMode(Enum):
    """How a session was started."""
    FULL = "full"        # Sort of a whole item set
    PARTIAL = "partial"  # Insertion of new items into an existing order


@dataclass(frozen=True)
class RankingSession:
    """An active binary-insertion sort.

    ``ordered`` holds the items placed so far (most preferred first),
    ``candidate`` is the item being searched into it and ``pending`` the
    queue of items still to place. ``low``/``high`` is the inclusive search
    window into ``ordered``.
    """
    ordered: tuple[str, ...]
    pending: tuple[str, ...]
    candidate: str
    low: int
    high: int
    mode: SessionMode = SessionMode.FULL

    @property
    def mid(self) -> int:
        return (self.low + self.high) // 2

    @property
    def window_open(self) -> bool:
        return self.low <= self.high

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe mapping."""
        return {
            "ordered": list(self.ordered),
            "pending": list(self.pending),
            "candidate": self.candidate,
            "low": self.low,
            "high": self.high,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RankingSession:
        """Rebuild a session from :meth:`to_dict` output.

        Raises:
            InvalidTransition: If the mapping does not describe an active session
        """
        try:
            session = cls(
                ordered=tuple(str(i) for i in data["ordered"]),
                pending=tuple(str(i) for i in data["pending"]),
                candidate=str(data["candidate"]),
                low=int(data["low"]),
                high=int(data["high"]),
                mode=SessionMode(data.get("mode", SessionMode.FULL.value)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTransition(f"Malformed ranking session: {e}") from e

        return check_session(session)


@dataclass(frozen=True)
class Active:
    """Ranking continues with ``session``."""
    session: RankingSession


@dataclass(frozen=True)
class Complete:
    """Ranking finished; ``ordered`` holds every item exactly once."""
    ordered: tuple[str, ...]


Outcome = Union[Active, Complete]


def check_session(session: object) -> RankingSession:
    """Verify that ``session`` is a well-formed, active session.

    The search window must be non-empty and inside ``ordered``, and no item
    may appear twice across ordered, pending and candidate.

    Returns:
        The session itself, for chaining

    Raises:
        InvalidTransition: On any contract violation
    """
    if isinstance(session, Complete):
        raise InvalidTransition("Ranking is already complete")
    if not isinstance(session, RankingSession):
        raise InvalidTransition(
            f"Expected a RankingSession, got {type(session).__name__}"
        )

    if not session.window_open:
        raise InvalidTransition(
            f"Search window is empty (low={session.low}, high={session.high})"
        )
    if session.low < 0 or session.high > len(session.ordered) - 1:
        raise InvalidTransition(
            f"Search window [{session.low}, {session.high}] is outside "
            f"{len(session.ordered)} ordered items"
        )

    check_membership(session)
    return session


def check_membership(session: RankingSession) -> None:
    """Verify that no item appears twice across ordered, pending and candidate."""
    placed = set(session.ordered)
    queued = set(session.pending)
    if len(placed) != len(session.ordered) or len(queued) != len(session.pending):
        raise InvalidTransition("Duplicate item in ranking session")
    if placed & queued or session.candidate in placed or session.candidate in queued:
        raise InvalidTransition(
            f"Candidate {session.candidate!r} overlaps ordered or pending items"
        )
