import shutil
import tempfile
import threading
import unittest
from unittest.mock import MagicMock

from squadclock.models import AppSnapshot
from squadclock.services import match_transitions as mt
from squadclock.services.persistence_service import LocalSnapshotStore, PersistenceGateway
from squadclock.services.session_service import MatchSession
from squadclock.services.snapshot_writer import SnapshotWriter
from squadclock.services.sync_queue import OfflineSyncQueue
from squadclock.utils.constants import DEFAULT_SQUAD
from tests.helpers import ManualScheduler


class MatchSessionTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()
        self.scheduler = ManualScheduler()
        self.store = LocalSnapshotStore(self.tmpdir)
        self.session = self._make_session()

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _make_session(self, **kwargs) -> MatchSession:
        queue = OfflineSyncQueue(self.store, scheduler=self.scheduler)
        writer = SnapshotWriter(PersistenceGateway(self.store), queue, key="state")
        return MatchSession(writer, scheduler=self.scheduler, save_delay=0.5, tick_interval=1.0, **kwargs)

    def _start_live_match(self):
        self.session.create_match("Rovers", match_id=1)
        return self.session.dispatch({"type": "START_MATCH"})


class ClockWiringTests(MatchSessionTestCase):
    def test_clock_runs_only_while_match_is_live_and_unpaused(self) -> None:
        self.session.create_match("Rovers")
        self.scheduler.advance(5)
        self.assertEqual(self.session.current_match.match_seconds, 0)
        self.assertFalse(self.session.clock.running)

        self.session.dispatch({"type": "START_MATCH"})
        self.scheduler.advance(10)
        match = self.session.current_match
        self.assertEqual(match.match_seconds, 10)
        self.assertEqual(match.find_player(0).seconds, 10)
        self.assertEqual(match.find_player(11).seconds, 0)

    def test_pause_and_resume(self) -> None:
        self._start_live_match()
        self.scheduler.advance(3)

        self.session.dispatch({"type": "TOGGLE_MATCH_CLOCK"})
        self.scheduler.advance(10)
        self.assertEqual(self.session.current_match.match_seconds, 3)
        self.assertFalse(self.session.clock.running)

        self.session.dispatch({"type": "TOGGLE_MATCH_CLOCK"})
        self.scheduler.advance(2)
        self.assertEqual(self.session.current_match.match_seconds, 5)

    def test_end_match_stops_clock(self) -> None:
        self._start_live_match()
        self.scheduler.advance(4)
        self.session.dispatch({"type": "END_MATCH"})
        self.scheduler.advance(10)

        match = self.session.current_match
        self.assertTrue(match.is_completed)
        self.assertEqual(match.match_seconds, 4)
        self.assertFalse(self.session.clock.running)

    def test_switching_matches_stops_and_resumes_clock(self) -> None:
        live = self._start_live_match()
        self.scheduler.advance(2)
        other = self.session.create_match("United", match_id=live.id + 1)

        self.scheduler.advance(10)
        self.assertFalse(self.session.clock.running)
        self.assertEqual(self.session.snapshot.find_match(live.id).match_seconds, 2)
        self.assertEqual(self.session.current_match.id, other.id)

        self.session.select_match(live.id)
        self.scheduler.advance(3)
        self.assertEqual(self.session.current_match.match_seconds, 5)

    def _fire_tick_while_locked(self, change) -> None:
        """Fire the pending tick on another thread, apply ``change`` while it waits on the session lock."""
        tick_call = self.session.clock._pending
        with self.session._lock:
            worker = threading.Thread(target=tick_call.fn)
            worker.start()
            worker.join(0.2)
            self.assertTrue(worker.is_alive())
            change()
        worker.join(2)
        self.assertFalse(worker.is_alive())

    def test_tick_waiting_on_lock_is_dropped_after_pause_and_resume(self) -> None:
        self._start_live_match()

        def pause_and_resume():
            self.session.dispatch({"type": "TOGGLE_MATCH_CLOCK"})
            self.session.dispatch({"type": "TOGGLE_MATCH_CLOCK"})

        self._fire_tick_while_locked(pause_and_resume)

        self.assertEqual(self.session.current_match.match_seconds, 0)
        self.assertTrue(self.session.clock.running)

    def test_tick_waiting_on_lock_does_not_advance_newly_selected_match(self) -> None:
        first = self._start_live_match()
        self.session.create_match("United", match_id=2)
        second = self.session.dispatch({"type": "START_MATCH"})

        self._fire_tick_while_locked(lambda: self.session.select_match(first.id))

        self.assertEqual(self.session.current_match.id, first.id)
        self.assertEqual(self.session.current_match.match_seconds, 0)
        self.assertEqual(self.session.snapshot.find_match(second.id).match_seconds, 0)

    def test_ticks_keep_matches_list_in_step(self) -> None:
        live = self._start_live_match()
        self.scheduler.advance(7)
        self.assertEqual(self.session.snapshot.find_match(live.id), self.session.current_match)

    def test_substitution_during_live_play(self) -> None:
        self._start_live_match()
        self.scheduler.advance(60)
        self.session.dispatch({"type": "SUB_OFF", "playerId": 0})
        self.session.dispatch({"type": "SUB_ON", "playerId": 11})
        self.scheduler.advance(30)

        match = self.session.current_match
        self.assertEqual(match.find_player(0).seconds, 60)
        self.assertEqual(match.find_player(11).seconds, 30)


class SaveTests(MatchSessionTestCase):
    def test_burst_of_changes_is_saved_once(self) -> None:
        self.session.create_match("Rovers")
        for _ in range(5):
            self.session.dispatch({"type": "UPDATE_SCORE", "field": "teamGoals", "delta": 1})
        self.assertTrue(self.session.save_pending)
        self.assertIsNone(self.store.load_snapshot("state"))

        self.scheduler.advance(0.5)

        saved = self.store.load_snapshot("state")
        self.assertEqual(saved["revision"], 1)
        self.assertEqual(saved["currentMatch"]["teamGoals"], 5)
        self.assertEqual(self.session.last_save_outcome, "saved")

    def test_ignored_action_does_not_schedule_save(self) -> None:
        self.session.create_match("Rovers")
        self.session.flush()

        self.session.dispatch({"type": "SUB_ON", "playerId": 99})

        self.assertFalse(self.session.save_pending)

    def test_flush_saves_immediately(self) -> None:
        self.session.set_team_title("Harbour Lions")
        self.assertTrue(self.session.flush())
        self.assertEqual(self.store.load_snapshot("state")["teamTitle"], "Harbour Lions")
        self.assertFalse(self.session.flush())

    def test_close_flushes_pending_save(self) -> None:
        self._start_live_match()
        self.session.close()

        self.assertFalse(self.session.clock.running)
        self.assertIsNotNone(self.store.load_snapshot("state"))

    def test_close_can_drop_pending_save(self) -> None:
        session = self._make_session(flush_on_close=False)
        session.set_team_title("Harbour Lions")
        session.close()

        self.scheduler.advance(1)
        self.assertIsNone(self.store.load_snapshot("state"))

    def test_sync_status_reports_save_state(self) -> None:
        self.session.set_team_title("Harbour Lions")
        status = self.session.sync_status()
        self.assertTrue(status["save_pending"])
        self.assertEqual(status["pending_count"], 0)
        self.assertEqual(status["revision"], 0)


class LoadTests(MatchSessionTestCase):
    def test_fresh_start_uses_default_squad(self) -> None:
        snapshot = self.session.load()
        self.assertEqual([p.name for p in snapshot.squad], DEFAULT_SQUAD)
        self.assertIsNone(snapshot.current_match)

    def test_restores_saved_live_match_and_resumes_clock(self) -> None:
        self._start_live_match()
        self.scheduler.advance(12)
        self.session.close()

        restored = self._make_session()
        restored.load()

        self.assertEqual(restored.current_match.match_seconds, 12)
        self.assertTrue(restored.clock.running)
        self.scheduler.advance(1)
        self.assertEqual(restored.current_match.match_seconds, 13)

    def test_offline_edits_survive_restart(self) -> None:
        remote_data = {}
        remote = MagicMock()
        remote.save_snapshot.side_effect = lambda key, payload: remote_data.__setitem__(key, payload) or True
        remote.load_snapshot.side_effect = remote_data.get

        def make_remote_session():
            queue = OfflineSyncQueue(self.store, scheduler=self.scheduler)
            writer = SnapshotWriter(PersistenceGateway(self.store, remote), queue, key="state")
            return MatchSession(writer, scheduler=self.scheduler, save_delay=0.5, tick_interval=1.0)

        session = make_remote_session()
        session.set_team_title("Online Title")
        session.flush()
        session.writer.queue.set_online(False)
        session.set_team_title("Offline Title")
        session.flush()
        session.close()
        self.assertEqual(remote_data["state"]["teamTitle"], "Online Title")

        restored = make_remote_session()
        snapshot = restored.load()

        self.assertEqual(snapshot.team_title, "Offline Title")
        self.assertEqual(restored.writer.queue.pending_count, 1)

        restored.set_team_title("After Restart")
        restored.flush()

        pushed = [c.args[1] for c in remote.save_snapshot.call_args_list]
        self.assertEqual([p["teamTitle"] for p in pushed],
                         ["Online Title", "Offline Title", "After Restart"])
        self.assertEqual([p["revision"] for p in pushed], [1, 2, 3])
        self.assertEqual(restored.writer.queue.pending_count, 0)

    def test_malformed_payload_falls_back_with_error(self) -> None:
        self.store.save_snapshot("state", {"squad": [{"name": "no id"}]})

        with self.assertLogs("squadclock.services.session_service", level="ERROR"):
            snapshot = self.session.load()

        self.assertEqual(snapshot, self.session.snapshot)
        self.assertEqual(len(snapshot.squad), len(DEFAULT_SQUAD))


class SquadTests(MatchSessionTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.session.load()

    def test_add_player_assigns_next_id(self) -> None:
        member = self.session.add_squad_player("  Quinn ")
        self.assertEqual(member.name, "Quinn")
        self.assertEqual(member.id, len(DEFAULT_SQUAD))
        self.assertEqual(self.session.snapshot.next_player_id, member.id + 1)
        self.assertIsNone(self.session.add_squad_player("   "))

    def test_rename_remove_and_reorder(self) -> None:
        first, second = self.session.snapshot.squad[:2]

        self.assertTrue(self.session.rename_squad_player(first.id, "Renamed"))
        self.assertTrue(self.session.reorder_squad(0, 1))
        self.assertEqual([p.id for p in self.session.snapshot.squad[:2]], [second.id, first.id])
        self.assertEqual(self.session.snapshot.squad[1].name, "Renamed")

        self.assertTrue(self.session.remove_squad_player(first.id))
        self.assertFalse(self.session.remove_squad_player(first.id))
        self.assertFalse(self.session.reorder_squad(0, 99))

    def test_new_match_copies_current_squad(self) -> None:
        self.session.add_squad_player("Quinn")
        match = self.session.create_match("Rovers")
        self.assertEqual(match.players[-1].name, "Quinn")
        self.assertFalse(match.players[-1].starting)
        self.assertIsNone(self.session.create_match("  "))

    def test_delete_current_match(self) -> None:
        match = self.session.create_match("Rovers")
        self.assertTrue(self.session.delete_match())
        self.assertIsNone(self.session.current_match)
        self.assertIsNone(self.session.snapshot.find_match(match.id))
        self.assertFalse(self.session.delete_match())


class UpdateMatchTests(MatchSessionTestCase):
    def test_update_match_without_current_match(self) -> None:
        self.assertIsNone(self.session.update_match(mt.start_match))
        self.assertIsNone(self.session.dispatch({"type": "START_MATCH"}))

    def test_update_match_with_transition_function(self) -> None:
        self.session.create_match("Rovers")
        match = self.session.update_match(mt.rename_player, 0, "Captain")
        self.assertEqual(match.find_player(0).name, "Captain")
        self.assertIsInstance(self.session.snapshot, AppSnapshot)


if __name__ == "__main__":
    unittest.main()
