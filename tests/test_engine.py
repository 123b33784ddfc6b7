"""Tests for the binary-insertion ranking engine."""

import random
from collections import Counter

import pytest

from pairank.engine import (
    Active,
    Complete,
    InsufficientItems,
    InvalidTransition,
    RankingSession,
    SessionMode,
    apply_comparison,
    begin_full_ranking,
    begin_partial_ranking,
    current_comparison_pair,
    progress,
    rank_with,
    session_size,
    unplaced,
)


def _prefer_by(target: list[str]):
    """Answer function for a user whose true preference is ``target``."""
    position = {item: i for i, item in enumerate(target)}
    return lambda candidate, reference: position[candidate] < position[reference]


def _drive(session: RankingSession, target: list[str], on_step=None) -> Complete:
    """Answer every question according to ``target`` until completion."""
    prefer = _prefer_by(target)
    outcome = Active(session)
    while isinstance(outcome, Active):
        current = outcome.session
        pair = current_comparison_pair(current)
        outcome = apply_comparison(current, prefer(pair.candidate, pair.reference))
        if on_step:
            on_step(current, outcome)
    return outcome


def _members(session: RankingSession) -> Counter:
    return Counter(session.ordered) + Counter(session.pending) + Counter([session.candidate])


class TestBeginFullRanking:
    """Tests for starting a ranking from scratch."""

    def test_initial_shape(self):
        """Three items: first is seeded, second is the candidate."""
        session = begin_full_ranking(["a", "b", "c"])

        assert session.ordered == ("a",)
        assert session.candidate == "b"
        assert session.pending == ("c",)
        assert (session.low, session.high) == (0, 0)
        assert session.mode == SessionMode.FULL

    def test_two_items_have_empty_queue(self):
        session = begin_full_ranking(["x", "y"])
        assert session.pending == ()
        assert session.candidate == "y"

    @pytest.mark.parametrize("items", [[], ["x"]])
    def test_insufficient_items(self, items):
        with pytest.raises(InsufficientItems):
            begin_full_ranking(items)

    def test_accepts_any_sequence(self):
        session = begin_full_ranking(("a", "b", "c", "d"))
        assert session.pending == ("c", "d")

    def test_input_not_mutated(self):
        items = ["a", "b", "c"]
        begin_full_ranking(items)
        assert items == ["a", "b", "c"]


class TestBeginPartialRanking:
    """Tests for inserting new items into an existing order."""

    def test_initial_shape(self):
        session = begin_partial_ranking(["a", "b"], ["c"])

        assert session.ordered == ("a", "b")
        assert session.candidate == "c"
        assert session.pending == ()
        assert (session.low, session.high) == (0, 1)
        assert session.mode == SessionMode.PARTIAL

    def test_no_new_items(self):
        with pytest.raises(InsufficientItems):
            begin_partial_ranking(["a", "b"], [])

    def test_empty_existing_order_degenerates_to_full(self):
        """No existing order: same shape as a full ranking of the new items."""
        partial = begin_partial_ranking([], ["x", "y"])
        assert partial == begin_full_ranking(["x", "y"])
        assert partial.mode == SessionMode.FULL

    def test_empty_existing_order_single_new_item(self):
        with pytest.raises(InsufficientItems):
            begin_partial_ranking([], ["x"])

    def test_existing_order_never_reordered(self):
        """Whatever the answers, existing items keep their relative order."""
        existing = ["a", "b", "c", "d", "e"]
        new = ["n1", "n2", "n3"]
        rng = random.Random(7)

        for _ in range(50):
            target = existing + new
            rng.shuffle(target)
            result = _drive(begin_partial_ranking(existing, new), target)

            kept = [i for i in result.ordered if i in existing]
            assert kept == existing
            assert sorted(result.ordered) == sorted(existing + new)


class TestApplyComparison:
    """Tests for the binary-insertion step."""

    def test_scenario_prefer_candidate_inserts_first(self):
        """b preferred over a: b goes in front, c becomes the candidate."""
        session = begin_full_ranking(["a", "b", "c"])

        outcome = apply_comparison(session, True)

        assert isinstance(outcome, Active)
        nxt = outcome.session
        assert nxt.ordered == ("b", "a")
        assert nxt.candidate == "c"
        assert nxt.pending == ()
        assert (nxt.low, nxt.high) == (0, 1)

    def test_scenario_completes_with_middle_insert(self):
        """c loses to b, beats a: final order b, c, a."""
        session = apply_comparison(begin_full_ranking(["a", "b", "c"]), True).session

        assert current_comparison_pair(session).reference == "b"
        outcome = apply_comparison(session, False)
        assert isinstance(outcome, Active)
        assert (outcome.session.low, outcome.session.high) == (1, 1)

        assert current_comparison_pair(outcome.session).reference == "a"
        outcome = apply_comparison(outcome.session, True)

        assert isinstance(outcome, Complete)
        assert outcome.ordered == ("b", "c", "a")

    def test_last_candidate_not_duplicated(self):
        """The completing candidate appears exactly once."""
        outcome = apply_comparison(begin_full_ranking(["a", "b"]), False)

        assert isinstance(outcome, Complete)
        assert outcome.ordered == ("a", "b")

    def test_partial_insert_keeps_existing_order(self):
        session = begin_partial_ranking(["a", "b"], ["c"])
        outcome = apply_comparison(session, True)
        assert outcome == Complete(("c", "a", "b"))

        session = begin_partial_ranking(["a", "b"], ["c"])
        outcome = apply_comparison(session, False)
        assert isinstance(outcome, Active)
        outcome = apply_comparison(outcome.session, False)
        assert outcome == Complete(("a", "b", "c"))

    def test_session_not_mutated(self):
        session = begin_full_ranking(["a", "b", "c"])
        apply_comparison(session, True)
        assert session.ordered == ("a",)
        assert session.candidate == "b"

    def test_complete_outcome_rejected(self):
        outcome = apply_comparison(begin_full_ranking(["a", "b"]), True)
        with pytest.raises(InvalidTransition):
            apply_comparison(outcome, True)

    def test_empty_window_rejected(self):
        session = RankingSession(ordered=("a", "b"), pending=(), candidate="c", low=1, high=0)
        with pytest.raises(InvalidTransition):
            apply_comparison(session, True)

    def test_window_out_of_range_rejected(self):
        session = RankingSession(ordered=("a",), pending=(), candidate="c", low=0, high=3)
        with pytest.raises(InvalidTransition):
            apply_comparison(session, True)

    def test_non_session_rejected(self):
        with pytest.raises(InvalidTransition):
            apply_comparison(None, True)

    def test_candidate_already_ordered_rejected(self):
        session = RankingSession(ordered=("a", "b"), pending=(), candidate="a", low=0, high=1)
        with pytest.raises(InvalidTransition):
            apply_comparison(session, True)

    def test_candidate_also_pending_rejected(self):
        session = RankingSession(ordered=("a",), pending=("b", "c"), candidate="c", low=0, high=0)
        with pytest.raises(InvalidTransition):
            apply_comparison(session, False)


class TestRankingProperties:
    """Invariants that hold for every answer sequence."""

    @pytest.mark.parametrize("size", [2, 3, 5, 8, 13])
    def test_recovers_hidden_order(self, size):
        """Answering consistently reproduces the user's true preference."""
        rng = random.Random(size)
        items = [f"item{i}" for i in range(size)]
        for _ in range(20):
            target = items[:]
            rng.shuffle(target)
            result = _drive(begin_full_ranking(items), target)
            assert list(result.ordered) == target

    def test_conservation_at_every_step(self):
        """No item is lost or duplicated while ranking."""
        items = [f"i{n}" for n in range(9)]
        expected = Counter(items)
        rng = random.Random(3)

        def check(before, outcome):
            assert _members(before) == expected
            if isinstance(outcome, Active):
                assert _members(outcome.session) == expected
                assert session_size(outcome.session) == len(items)
            else:
                assert Counter(outcome.ordered) == expected

        for _ in range(25):
            target = items[:]
            rng.shuffle(target)
            _drive(begin_full_ranking(items), target, on_step=check)

    def test_arbitrary_answers_keep_every_item_once(self):
        """Inconsistent answers still yield a permutation of the input."""
        items = [f"i{n}" for n in range(7)]
        rng = random.Random(11)

        for _ in range(50):
            outcome = Active(begin_full_ranking(items))
            while isinstance(outcome, Active):
                outcome = apply_comparison(outcome.session, rng.random() < 0.5)
            assert len(outcome.ordered) == len(items)
            assert set(outcome.ordered) == set(items)

    def test_window_narrows_monotonically(self):
        items = [f"i{n}" for n in range(10)]
        rng = random.Random(5)

        def check(before, outcome):
            if isinstance(outcome, Active) and outcome.session.candidate == before.candidate:
                after = outcome.session
                assert after.low >= before.low
                assert after.high <= before.high
                assert (after.high - after.low) < (before.high - before.low)

        for _ in range(25):
            target = items[:]
            rng.shuffle(target)
            _drive(begin_full_ranking(items), target, on_step=check)

    def test_replay_is_deterministic(self):
        items = ["a", "b", "c", "d", "e", "f"]
        answers = [True, False, False, True, True, False, True, False, True, True, False]

        def replay():
            outcome = Active(begin_full_ranking(items))
            it = iter(answers)
            while isinstance(outcome, Active):
                outcome = apply_comparison(outcome.session, next(it))
            return outcome.ordered

        assert replay() == replay()

    def test_candidates_processed_in_queue_order(self):
        items = ["a", "b", "c", "d", "e"]
        seen = []

        def record(before, outcome):
            if not seen or seen[-1] != before.candidate:
                seen.append(before.candidate)

        _drive(begin_full_ranking(items), list(reversed(items)), on_step=record)
        assert seen == ["b", "c", "d", "e"]


class TestProjections:
    """Tests for the comparison pair and progress views."""

    def test_comparison_pair_uses_midpoint(self):
        session = RankingSession(
            ordered=("a", "b", "c", "d"), pending=(), candidate="x", low=0, high=3
        )
        pair = current_comparison_pair(session)
        assert pair.candidate == "x"
        assert pair.reference == "b"

    def test_comparison_pair_on_complete_rejected(self):
        with pytest.raises(InvalidTransition):
            current_comparison_pair(Complete(("a", "b")))

    def test_progress_counts_candidate(self):
        session = begin_full_ranking(["a", "b", "c"])
        result = progress(session, 3)
        assert result.processed == 2
        assert result.total == 3
        assert result.percent == 67

    def test_progress_rounds_half_up(self):
        session = RankingSession(
            ordered=("a", "b"), pending=("d", "e", "f", "g", "h"), candidate="c", low=0, high=1
        )
        assert progress(session, 8).percent == 38

    def test_progress_on_complete_rejected(self):
        outcome = apply_comparison(begin_full_ranking(["a", "b"]), True)
        assert isinstance(outcome, Complete)
        with pytest.raises(InvalidTransition):
            progress(outcome, 2)

    def test_progress_on_empty_window_rejected(self):
        session = RankingSession(ordered=("a",), pending=(), candidate="b", low=1, high=0)
        with pytest.raises(InvalidTransition):
            progress(session, 2)

    def test_progress_requires_positive_total(self):
        with pytest.raises(ValueError):
            progress(begin_full_ranking(["a", "b"]), 0)

    def test_unplaced(self):
        session = begin_full_ranking(["a", "b", "c", "d"])
        assert unplaced(session) == ("b", "c", "d")


class TestSessionSerialization:
    """Tests for RankingSession.to_dict / from_dict."""

    def test_round_trip_mid_session(self):
        session = apply_comparison(begin_partial_ranking(["a", "b", "c"], ["x", "y"]), False).session
        data = session.to_dict()

        assert data["mode"] == "partial"
        assert RankingSession.from_dict(data) == session

    def test_missing_field_rejected(self):
        data = begin_full_ranking(["a", "b"]).to_dict()
        del data["candidate"]
        with pytest.raises(InvalidTransition):
            RankingSession.from_dict(data)

    def test_duplicate_rejected(self):
        data = begin_full_ranking(["a", "b", "c"]).to_dict()
        data["pending"] = ["a"]
        with pytest.raises(InvalidTransition):
            RankingSession.from_dict(data)

    def test_empty_window_rejected(self):
        data = begin_full_ranking(["a", "b"]).to_dict()
        data["low"] = 1
        with pytest.raises(InvalidTransition):
            RankingSession.from_dict(data)


class TestRankWith:
    """Tests for the programmatic driver."""

    def test_sorts_with_callback(self):
        words = ["pear", "fig", "banana", "kiwi"]
        result = rank_with(words, lambda cand, ref: len(cand) < len(ref))
        assert result == ("fig", "pear", "kiwi", "banana")

    def test_short_input_returned_as_is(self):
        assert rank_with(["only"], lambda c, r: True) == ("only",)
        assert rank_with([], lambda c, r: True) == ()
