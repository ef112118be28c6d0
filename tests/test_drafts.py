"""
Tests for result drafts — buffered edits, atomic commit, discard, and the
single-open-draft rule.
"""

from __future__ import annotations

import unittest

from cardswiss.tournaments.base import Bye, Decisive, Match, Player, Round, Tie, Tournament, Unset
from cardswiss.tournaments.drafts import DraftController, RoundDraft, validate_outcome
from cardswiss.tournaments.errors import DraftConflict, IllegalResultForMatch, TournamentFinalized
from cardswiss.tournaments.standings import compute_standings


def make_tournament() -> Tournament:
    t = Tournament(players=[Player(id=n, name=n) for n in "ABCDE"], rounds_planned=2)
    t.rounds.append(
        Round("swiss", 1, "Round 1", (Match("A", "B"), Match("C", "D"), Match.bye_for("E")))
    )
    t.rounds.append(
        Round("swiss", 2, "Round 2", (Match("A", "C"), Match("B", "E"), Match.bye_for("D")))
    )
    return t


class ValidateOutcomeTests(unittest.TestCase):

    def test_bye_result_is_fixed(self):
        bye = Match.bye_for("E")
        validate_outcome(bye, Bye("E"), "swiss")
        for outcome in (Tie(), Decisive("E"), Unset()):
            with self.assertRaises(IllegalResultForMatch):
                validate_outcome(bye, outcome, "swiss")

    def test_bye_on_real_match(self):
        with self.assertRaises(IllegalResultForMatch):
            validate_outcome(Match("A", "B"), Bye("A"), "swiss")

    def test_tie_only_in_swiss(self):
        validate_outcome(Match("A", "B"), Tie(), "swiss")
        with self.assertRaises(IllegalResultForMatch):
            validate_outcome(Match("A", "B"), Tie(), "topcut")

    def test_winner_must_be_in_match(self):
        with self.assertRaises(ValueError):
            validate_outcome(Match("A", "B"), Decisive("C"), "swiss")


class RoundDraftTests(unittest.TestCase):

    def test_snapshot_is_clean(self):
        draft = RoundDraft.snapshot(0, make_tournament().rounds[0])
        self.assertFalse(draft.dirty)
        self.assertEqual(draft.outcomes, (Unset(), Unset(), Bye("E")))

    def test_edits_are_buffered(self):
        t = make_tournament()
        draft = RoundDraft.snapshot(0, t.rounds[0]).with_result(0, Decisive("A"))
        self.assertTrue(draft.dirty)
        self.assertEqual(t.rounds[0].matches[0].outcome, Unset())

    def test_discard_restores_original(self):
        draft = RoundDraft.snapshot(0, make_tournament().rounds[0])
        edited = draft.with_result(1, Tie())
        self.assertEqual(edited.discard(), draft)

    def test_commit_returns_new_round(self):
        rnd = make_tournament().rounds[0]
        draft = RoundDraft.snapshot(0, rnd).with_result(0, Decisive("B")).with_result(1, Tie())
        committed = draft.commit(rnd)
        self.assertTrue(committed.is_complete)
        self.assertEqual(committed.matches[0].winner, "B")
        self.assertFalse(rnd.is_complete)

    def test_bad_index(self):
        draft = RoundDraft.snapshot(0, make_tournament().rounds[0])
        with self.assertRaises(IndexError):
            draft.with_result(5, Tie())


class DraftControllerTests(unittest.TestCase):

    def setUp(self) -> None:
        self.t = make_tournament()
        self.drafts = DraftController()

    def test_standings_unchanged_until_commit(self):
        self.drafts.begin_edit(self.t, 0)
        self.drafts.set_result(0, Decisive("A"))
        self.drafts.set_result(1, Decisive("C"))
        before = {e.player.id: e.points for e in compute_standings(self.t)}
        self.assertEqual(before["A"], 0)

        self.drafts.commit(self.t)
        after = {e.player.id: e.points for e in compute_standings(self.t)}
        self.assertEqual(after["A"], 3)
        self.assertIsNone(self.drafts.draft)

    def test_reopening_same_round_keeps_buffer(self):
        self.drafts.begin_edit(self.t, 0)
        self.drafts.set_result(0, Decisive("A"))
        again = self.drafts.begin_edit(self.t, 0)
        self.assertTrue(again.dirty)

    def test_switching_away_from_dirty_draft(self):
        self.drafts.begin_edit(self.t, 0)
        self.drafts.set_result(0, Decisive("A"))
        with self.assertRaises(DraftConflict):
            self.drafts.begin_edit(self.t, 1)
        self.assertEqual(self.drafts.editing, 0)

        draft = self.drafts.begin_edit(self.t, 1, discard=True)
        self.assertEqual(draft.round_index, 1)
        self.assertEqual(self.t.rounds[0].matches[0].outcome, Unset())

    def test_switching_away_from_clean_draft(self):
        self.drafts.begin_edit(self.t, 0)
        self.assertEqual(self.drafts.begin_edit(self.t, 1).round_index, 1)

    def test_illegal_commit_changes_nothing(self):
        self.drafts.begin_edit(self.t, 0)
        self.drafts.set_result(0, Decisive("A"))
        self.drafts.set_result(2, Tie())   # tie on the bye
        before = list(self.t.rounds)
        with self.assertRaises(IllegalResultForMatch):
            self.drafts.commit(self.t)
        self.assertEqual(self.t.rounds, before)
        self.assertIsNotNone(self.drafts.draft)

    def test_partial_commit_allowed(self):
        self.drafts.begin_edit(self.t, 1)
        self.drafts.set_result(0, Decisive("C"))
        committed = self.drafts.commit(self.t)
        self.assertFalse(committed.is_complete)
        self.assertEqual(self.t.rounds[1].matches[0].winner, "C")

    def test_cancel(self):
        self.drafts.begin_edit(self.t, 0)
        self.drafts.set_result(0, Decisive("A"))
        self.drafts.cancel()
        self.assertIsNone(self.drafts.draft)
        self.assertEqual(self.t.rounds[0].matches[0].outcome, Unset())

    def test_negative_index_rejected(self):
        with self.assertRaises(IndexError):
            self.drafts.begin_edit(self.t, -1)
        self.assertIsNone(self.drafts.draft)

    def test_set_result_without_draft(self):
        with self.assertRaises(RuntimeError):
            self.drafts.set_result(0, Tie())

    def test_finalized_tournament_is_read_only(self):
        self.t.finalized = True
        with self.assertRaises(TournamentFinalized):
            self.drafts.begin_edit(self.t, 0)


if __name__ == "__main__":
    unittest.main()
