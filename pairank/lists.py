"""Named lists and the workspace that holds them.

The workspace wraps the ranking engine: it owns the lists, at most one
in-flight ranking session, and translates engine outcomes into list
state changes.
"""

from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .engine import (
    Active,
    Complete,
    InsufficientItems,
    InvalidTransition,
    Progress,
    RankingSession,
    SessionMode,
    apply_comparison,
    begin_full_ranking,
    begin_partial_ranking,
    current_comparison_pair,
    progress,
    unplaced,
)

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


class ListNotFound(LookupError):
    """Raised when a list reference matches no list."""


class ListStatus(Enum):
    """Lifecycle of a list."""
    UNRANKED = "unranked"
    RANKING = "ranking"
    RANKED = "ranked"


def generate_id() -> str:
    """Generate a unique item/list identifier: ``<epoch-ms>-<random base36>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


@dataclass
class ListItem:
    """A single rankable entry."""
    id: str
    text: str


@dataclass
class RankList:
    """A named list of items and its ranking."""
    id: str
    name: str = ""
    items: list[ListItem] = field(default_factory=list)
    status: ListStatus = ListStatus.UNRANKED
    ranked_ids: list[str] | None = None
    unranked_items: list[ListItem] = field(default_factory=list)  # Added after ranking
    created_at: int = 0

    @property
    def display_name(self) -> str:
        return self.name or "Untitled List"

    def get_item(self, item_id: str) -> ListItem | None:
        for item in self.items + self.unranked_items:
            if item.id == item_id:
                return item
        return None

    def ranked_items(self) -> list[ListItem]:
        """Items in ranked order, skipping ids with no matching item."""
        if self.ranked_ids is None:
            return []
        by_id = {item.id: item for item in self.items}
        return [by_id[i] for i in self.ranked_ids if i in by_id]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "items": [{"id": i.id, "text": i.text} for i in self.items],
            "status": self.status.value,
            "ranked_ids": self.ranked_ids,
            "unranked_items": [{"id": i.id, "text": i.text} for i in self.unranked_items],
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RankList:
        ranked_ids = data.get("ranked_ids")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            items=[ListItem(id=str(i["id"]), text=str(i["text"])) for i in data.get("items", [])],
            status=ListStatus(data.get("status", ListStatus.UNRANKED.value)),
            ranked_ids=[str(i) for i in ranked_ids] if ranked_ids is not None else None,
            unranked_items=[
                ListItem(id=str(i["id"]), text=str(i["text"]))
                for i in data.get("unranked_items", [])
            ],
            created_at=int(data.get("created_at", 0)),
        )


def new_list(name: str = "") -> RankList:
    return RankList(id=generate_id(), name=name, created_at=int(time.time() * 1000))


class Workspace:
    """All lists plus the single in-flight ranking session."""

    def __init__(self, lists: list[RankList] | None = None):
        self.lists: list[RankList] = lists if lists else [new_list()]
        self.current_list_id: str | None = None
        self.session: RankingSession | None = None
        self.session_list_id: str | None = None

    # ── Lists ─────────────────────────────────────────────────────────

    def create_list(self, name: str = "") -> RankList:
        rank_list = new_list(name.strip())
        self.lists.append(rank_list)
        self.current_list_id = rank_list.id
        return rank_list

    def find_list(self, ref: str) -> RankList:
        """Resolve a list by exact id, exact name, or unique id prefix.

        Raises:
            ListNotFound: If nothing (or more than one list) matches
        """
        for rank_list in self.lists:
            if rank_list.id == ref:
                return rank_list
        for rank_list in self.lists:
            if rank_list.name and rank_list.name == ref:
                return rank_list

        matches = [l for l in self.lists if ref and l.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ListNotFound(f"List reference '{ref}' is ambiguous")
        raise ListNotFound(f"No list matches '{ref}'")

    def rename_list(self, list_id: str, name: str) -> None:
        self.find_list(list_id).name = name.strip()

    def delete_list(self, list_id: str) -> None:
        """Delete a list. The workspace always keeps at least one list."""
        target = self.find_list(list_id)
        self._release_session()
        self.lists = [l for l in self.lists if l.id != target.id]

        if not self.lists:
            self.lists = [new_list()]
            self.current_list_id = self.lists[0].id
        elif self.current_list_id == target.id:
            self.current_list_id = self.lists[0].id

    def set_current_list(self, list_id: str) -> RankList:
        rank_list = self.find_list(list_id)
        self.current_list_id = rank_list.id
        return rank_list

    def load_shared(self, rank_list: RankList) -> RankList:
        """Add a list received through a share link and make it current."""
        rank_list.id = generate_id()
        self.lists.append(rank_list)
        self.current_list_id = rank_list.id
        return rank_list

    # ── Items ─────────────────────────────────────────────────────────

    def add_item(self, list_id: str, text: str) -> ListItem | None:
        """Add an item. Blank text is ignored.

        Items added to a ranked list wait in ``unranked_items`` until they
        are inserted by a partial ranking.
        """
        text = text.strip()
        if not text:
            return None

        rank_list = self.find_list(list_id)
        if rank_list.status is ListStatus.RANKING:
            raise InvalidTransition(
                f"Cannot add items to '{rank_list.display_name}' while it is being ranked"
            )

        item = ListItem(id=generate_id(), text=text)
        if rank_list.status is ListStatus.RANKED:
            rank_list.unranked_items.append(item)
        else:
            rank_list.items.append(item)
        return item

    def delete_item(self, list_id: str, item_id: str) -> bool:
        """Remove an item from a list.

        Returns:
            True if an item was removed
        """
        rank_list = self.find_list(list_id)
        if rank_list.status is ListStatus.RANKING:
            raise InvalidTransition(
                f"Cannot remove items from '{rank_list.display_name}' while it is being ranked"
            )

        before = len(rank_list.items) + len(rank_list.unranked_items)
        rank_list.items = [i for i in rank_list.items if i.id != item_id]
        rank_list.unranked_items = [i for i in rank_list.unranked_items if i.id != item_id]
        if rank_list.ranked_ids is not None:
            rank_list.ranked_ids = [i for i in rank_list.ranked_ids if i != item_id]
        return len(rank_list.items) + len(rank_list.unranked_items) < before

    # ── Ranking ───────────────────────────────────────────────────────

    @property
    def ranking_list(self) -> RankList | None:
        if self.session is None or self.session_list_id is None:
            return None
        return self.find_list(self.session_list_id)

    def start_ranking(self, list_id: str) -> RankingSession:
        """Rank every item of a list from scratch.

        Restarting the list that is already being ranked discards its
        in-flight session.

        Raises:
            InsufficientItems: If the list has fewer than two items
        """
        rank_list = self.find_list(list_id)
        count = len(rank_list.items) + len(rank_list.unranked_items)
        if count < 2:
            raise InsufficientItems(
                f"'{rank_list.display_name}' needs at least 2 items to rank, has {count}"
            )

        self._release_session()
        all_items = rank_list.items + rank_list.unranked_items
        session = begin_full_ranking([item.id for item in all_items])

        rank_list.items = all_items
        rank_list.unranked_items = []
        rank_list.ranked_ids = None
        rank_list.status = ListStatus.RANKING
        self._set_session(rank_list, session)
        return session

    def start_partial_ranking(self, list_id: str) -> RankingSession:
        """Insert a ranked list's new items into its existing order.

        Raises:
            InsufficientItems: If the list is not ranked or has no new items
            InvalidTransition: If the list is already being ranked
        """
        rank_list = self.find_list(list_id)
        if rank_list.status is ListStatus.RANKING:
            raise InvalidTransition(f"'{rank_list.display_name}' is already being ranked")
        if rank_list.status is not ListStatus.RANKED or rank_list.ranked_ids is None:
            raise InsufficientItems(f"'{rank_list.display_name}' has not been ranked yet")

        # Raises before any state is touched
        session = begin_partial_ranking(
            rank_list.ranked_ids,
            [item.id for item in rank_list.unranked_items],
        )

        self._release_session()
        rank_list.items = rank_list.items + rank_list.unranked_items
        rank_list.unranked_items = []
        rank_list.status = ListStatus.RANKING
        self._set_session(rank_list, session)
        return session

    def compare(self, candidate_preferred: bool) -> RankList | None:
        """Apply one answer to the in-flight session.

        Returns:
            The ranked list when this answer completed the ranking, else None

        Raises:
            InvalidTransition: If no ranking is in progress
        """
        rank_list = self._require_ranking()
        outcome = apply_comparison(self.session, candidate_preferred)

        if isinstance(outcome, Active):
            self.session = outcome.session
            return None

        if not isinstance(outcome, Complete):
            raise InvalidTransition(f"Unexpected ranking outcome: {outcome!r}")

        rank_list.ranked_ids = list(outcome.ordered)
        rank_list.unranked_items = []
        rank_list.status = ListStatus.RANKED
        self._clear_session()
        logger.info("Finished ranking '%s' (%d items)", rank_list.display_name, len(outcome.ordered))
        return rank_list

    def stop_ranking(self) -> RankList:
        """Abandon the in-flight session.

        A partial ranking keeps the order built so far and discards the new
        items that were not placed yet. A full ranking reverts the list to
        unranked.
        """
        rank_list = self._require_ranking()
        session = self.session

        if session.mode is SessionMode.PARTIAL:
            dropped = set(unplaced(session))
            rank_list.ranked_ids = list(session.ordered)
            rank_list.items = [i for i in rank_list.items if i.id not in dropped]
            rank_list.status = ListStatus.RANKED
            logger.info("Stopped insertion into '%s', dropped %d items", rank_list.display_name, len(dropped))
        else:
            rank_list.ranked_ids = None
            rank_list.status = ListStatus.UNRANKED

        rank_list.unranked_items = []
        self._clear_session()
        return rank_list

    def comparison(self) -> tuple[ListItem, ListItem]:
        """The (candidate, reference) items for the next question."""
        rank_list = self._require_ranking()
        pair = current_comparison_pair(self.session)
        candidate = rank_list.get_item(pair.candidate)
        reference = rank_list.get_item(pair.reference)
        if candidate is None or reference is None:
            raise InvalidTransition(
                f"Ranking session refers to items missing from '{rank_list.display_name}'"
            )
        return candidate, reference

    def progress(self) -> Progress:
        rank_list = self._require_ranking()
        return progress(self.session, len(rank_list.items))

    def _require_ranking(self) -> RankList:
        rank_list = self.ranking_list
        if rank_list is None:
            raise InvalidTransition("No ranking in progress")
        return rank_list

    def _set_session(self, rank_list: RankList, session: RankingSession) -> None:
        self.session = session
        self.session_list_id = rank_list.id
        self.current_list_id = rank_list.id

    def _clear_session(self) -> None:
        self.session = None
        self.session_list_id = None

    def _release_session(self) -> None:
        """Let go of an unfinished session that is being replaced.

        The list returns to its last stable state; items a partial ranking
        has not placed yet go back to waiting as unranked items.
        """
        rank_list = self.ranking_list
        if rank_list is not None and rank_list.status is ListStatus.RANKING:
            if self.session.mode is SessionMode.PARTIAL:
                waiting = set(unplaced(self.session))
                rank_list.ranked_ids = list(self.session.ordered)
                rank_list.unranked_items = [i for i in rank_list.items if i.id in waiting]
                rank_list.items = [i for i in rank_list.items if i.id not in waiting]
                rank_list.status = ListStatus.RANKED
            else:
                rank_list.status = ListStatus.UNRANKED
            logger.debug("Released unfinished ranking of '%s'", rank_list.display_name)
        self._clear_session()

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "lists": [l.to_dict() for l in self.lists],
            "current_list_id": self.current_list_id,
            "ranking": (
                {"list_id": self.session_list_id, "session": self.session.to_dict()}
                if self.session is not None else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Workspace:
        workspace = cls([RankList.from_dict(l) for l in data.get("lists", [])])
        workspace.current_list_id = data.get("current_list_id")

        ranking = data.get("ranking")
        if ranking:
            workspace.session = RankingSession.from_dict(ranking["session"])
            workspace.session_list_id = str(ranking["list_id"])
            # Resolves, or raises ListNotFound for a dangling session
            workspace.find_list(workspace.session_list_id)
        return workspace
