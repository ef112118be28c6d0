"""
Tests for TournamentSession — roster rules, settings, round generation,
notifications, persistence calls and finalization.
"""

from __future__ import annotations

import unittest

from cardswiss.config import TournamentDefaults
from cardswiss.tournaments import (
    Decisive,
    DraftConflict,
    InsufficientPlayers,
    InvalidPlayerName,
    InvalidSetting,
    RosterLockedAfterRoundsStarted,
    RoundLocked,
    RoundNotComplete,
    ScheduleComplete,
    StageNotComplete,
    Tie,
    Tournament,
    TournamentFinalized,
    TournamentWriter,
    create_tournament,
    open_session,
)


class RecordingStore(TournamentWriter):
    def __init__(self) -> None:
        self.saved: list[str] = []

    def put(self, tournament: Tournament) -> None:
        self.saved.append(tournament.id)


def make_session(*names: str, **defaults):
    store = RecordingStore()
    messages: list[str] = []
    t = create_tournament(TournamentDefaults(**defaults))
    session = open_session(t, store=store, notify=messages.append, seed=1)
    for name in names:
        session.add_player(name)
    store.saved.clear()
    return session, store, messages


def finish_open_round(session) -> None:
    rnd = session.tournament.rounds[session.draft.round_index]
    for idx, m in enumerate(rnd.matches):
        if not m.bye:
            session.set_result(idx, Decisive(m.p1))
    session.commit()


class CreateTournamentTests(unittest.TestCase):

    def test_defaults_applied(self):
        t = create_tournament(
            TournamentDefaults(name="Friday", format="Bo3", rounds_planned=4, top_cut_size=8)
        )
        self.assertEqual((t.name, t.format, t.rounds_planned), ("Friday", "Bo3", 4))
        self.assertEqual(t.top_cut.size, 8)
        self.assertFalse(t.top_cut.started)

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            create_tournament(pairing_mode="double_elim")

    def test_independent_sessions(self):
        a, _, _ = make_session("A", "B")
        b, _, _ = make_session("C")
        self.assertEqual([p.name for p in a.tournament.players], ["A", "B"])
        self.assertEqual([p.name for p in b.tournament.players], ["C"])


class RosterTests(unittest.TestCase):

    def test_add_trims_and_saves(self):
        session, store, _ = make_session()
        player = session.add_player("  Alice ")
        self.assertEqual(player.name, "Alice")
        self.assertEqual(store.saved, [session.tournament.id])

    def test_invalid_names_notify(self):
        session, store, messages = make_session("Alice")
        with self.assertRaises(InvalidPlayerName):
            session.add_player("   ")
        with self.assertRaises(InvalidPlayerName):
            session.add_player("ALICE")
        self.assertEqual(len(messages), 2)
        self.assertEqual(len(session.tournament.players), 1)
        self.assertEqual(store.saved, [])

    def test_rename(self):
        session, _, _ = make_session("Alice", "Bob")
        bob = session.tournament.players[1]
        session.rename_player(bob.id, "Robert")
        self.assertEqual(session.tournament.player(bob.id).name, "Robert")
        # Renaming to own name with different case is fine
        session.rename_player(bob.id, "ROBERT")
        with self.assertRaises(InvalidPlayerName):
            session.rename_player(bob.id, "alice")

    def test_unknown_player(self):
        session, _, _ = make_session("Alice")
        with self.assertRaises(KeyError):
            session.remove_player("nope")

    def test_roster_locked_once_rounds_exist(self):
        session, _, messages = make_session("A", "B", "C")
        session.next_round()
        with self.assertRaises(RosterLockedAfterRoundsStarted):
            session.add_player("D")
        with self.assertRaises(RosterLockedAfterRoundsStarted):
            session.remove_player(session.tournament.players[0].id)
        self.assertEqual(len(messages), 2)
        self.assertEqual(len(session.tournament.players), 3)


class SettingsTests(unittest.TestCase):

    def test_update(self):
        session, store, _ = make_session("A", "B")
        session.update_settings(name="Cup", format="Bo3", rounds_planned=3, top_cut_size=2)
        t = session.tournament
        self.assertEqual((t.name, t.format, t.rounds_planned, t.top_cut.size), ("Cup", "Bo3", 3, 2))
        self.assertEqual(len(store.saved), 1)

    def test_invalid_values_change_nothing(self):
        session, store, messages = make_session("A", "B")
        with self.assertRaises(InvalidSetting):
            session.update_settings(name="Changed", top_cut_size=3)
        self.assertEqual(session.tournament.name, "New tournament")
        with self.assertRaises(InvalidSetting):
            session.update_settings(format="Bo5")
        with self.assertRaises(InvalidSetting):
            session.update_settings(pairing_mode="double_elim")
        self.assertEqual(len(messages), 3)
        self.assertEqual(store.saved, [])

    def test_zero_rounds_notifies(self):
        session, _, messages = make_session("A", "B", rounds_planned=4)
        with self.assertRaises(InvalidSetting):
            session.update_settings(rounds_planned=0)
        self.assertEqual(messages, ["Plan at least 1 round."])
        self.assertEqual(session.tournament.rounds_planned, 4)

    def test_locked_after_rounds(self):
        session, _, _ = make_session("A", "B", "C", "D", rounds_planned=3)
        session.next_round()
        finish_open_round(session)
        session.next_round()
        with self.assertRaises(RoundLocked):
            session.update_settings(pairing_mode="round_robin")
        with self.assertRaises(RoundLocked):
            session.update_settings(rounds_planned=1)
        session.update_settings(rounds_planned=2)
        self.assertEqual(session.tournament.rounds_planned, 2)


class RoundFlowTests(unittest.TestCase):

    def test_next_round_opens_draft_and_saves(self):
        session, store, _ = make_session("A", "B", "C", "D")
        rnd = session.next_round()
        self.assertEqual(session.draft.round_index, 0)
        self.assertFalse(session.draft.dirty)
        self.assertEqual(session.tournament.rounds, [rnd])
        self.assertEqual(len(store.saved), 1)

    def test_previous_round_must_be_complete(self):
        session, _, messages = make_session("A", "B", "C", "D")
        session.next_round()
        with self.assertRaises(RoundNotComplete):
            session.next_round()
        self.assertEqual(messages, ["Finish entering results for the current round first."])
        self.assertEqual(len(session.tournament.rounds), 1)

    def test_dirty_draft_blocks_next_round(self):
        session, _, _ = make_session("A", "B")
        rnd = session.next_round()
        session.set_result(0, Decisive(rnd.matches[0].p1))
        with self.assertRaises(DraftConflict):
            session.next_round()

    def test_one_save_per_commit(self):
        session, store, _ = make_session("A", "B", "C", "D")
        rnd = session.next_round()
        store.saved.clear()
        session.set_result(0, Tie())
        session.set_result(1, Decisive(rnd.matches[1].p2))
        self.assertEqual(store.saved, [])
        result = session.commit()
        self.assertEqual(len(store.saved), 1)
        self.assertFalse(result.can_advance)
        self.assertTrue(result.round.is_complete)

    def test_needs_two_players(self):
        session, _, messages = make_session("Solo")
        with self.assertRaises(InsufficientPlayers):
            session.next_round()
        self.assertEqual(len(messages), 1)

    def test_swiss_runs_planned_rounds(self):
        session, _, _ = make_session("A", "B", "C", "D", "E", rounds_planned=3)
        for _ in range(3):
            session.next_round()
            finish_open_round(session)
        with self.assertRaises(ScheduleComplete):
            session.next_round()
        self.assertTrue(session.tournament.main_phase_complete())

    def test_round_robin_runs_schedule(self):
        session, _, _ = make_session("A", "B", "C", "D", pairing_mode="round_robin")
        self.assertEqual(session.tournament.planned_main_rounds(), 3)
        for _ in range(3):
            session.next_round()
            finish_open_round(session)
        with self.assertRaises(ScheduleComplete):
            session.next_round()
        met = {
            frozenset(m.player_ids) for r in session.tournament.rounds for m in r.matches
        }
        self.assertEqual(len(met), 6)

    def test_edit_earlier_round(self):
        session, _, _ = make_session("A", "B", rounds_planned=2)
        session.next_round()
        finish_open_round(session)
        session.next_round()
        first = session.tournament.rounds[0].matches[0]
        session.begin_edit(0)
        session.set_result(0, Decisive(first.p2))
        session.commit()
        self.assertEqual(session.tournament.rounds[0].matches[0].winner, first.p2)


class FinalizeTests(unittest.TestCase):

    def test_needs_finished_rounds(self):
        session, _, _ = make_session("A", "B", rounds_planned=1)
        session.next_round()
        with self.assertRaises(StageNotComplete):
            session.finalize()

    def test_needs_planned_top_cut(self):
        session, _, _ = make_session("A", "B", rounds_planned=1, top_cut_size=2)
        session.next_round()
        finish_open_round(session)
        with self.assertRaises(StageNotComplete):
            session.finalize()

    def test_finalized_is_read_only(self):
        session, _, messages = make_session("A", "B", rounds_planned=1)
        session.next_round()
        finish_open_round(session)
        session.finalize()
        self.assertTrue(session.tournament.finalized)
        self.assertIsNone(session.draft)

        messages.clear()
        with self.assertRaises(TournamentFinalized):
            session.update_settings(name="Again")
        with self.assertRaises(TournamentFinalized):
            session.begin_edit(0)
        self.assertEqual(len(messages), 2)

    def test_top_cut_without_size_notifies(self):
        session, store, messages = make_session("A", "B", "C", "D", rounds_planned=1)
        session.next_round()
        finish_open_round(session)
        store.saved.clear()
        with self.assertRaises(InvalidSetting):
            session.start_top_cut()
        self.assertEqual(len(messages), 1)
        self.assertFalse(session.tournament.top_cut.started)
        self.assertEqual(len(session.tournament.rounds), 1)
        self.assertEqual(store.saved, [])

    def test_after_top_cut(self):
        session, _, _ = make_session("A", "B", "C", "D", rounds_planned=1, top_cut_size=2)
        session.next_round()
        finish_open_round(session)
        session.start_top_cut()
        finish_open_round(session)
        with self.assertRaises(StageNotComplete):
            session.finalize()
        session.advance_top_cut()
        session.finalize()
        self.assertIsNotNone(session.champion())


if __name__ == "__main__":
    unittest.main()
