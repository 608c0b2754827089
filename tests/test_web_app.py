import shutil
import tempfile
import unittest

from squadclock.config import Config
from squadclock.services import ServiceFactory
from squadclock.ui.web_app import create_app
from tests.helpers import ManualScheduler


class WebAppTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()

        class TestConfig(Config):
            DATA_DIR = self.tmpdir
            STORAGE_KEY = "state"
            REMOTE_URL = None
            REMOTE_KEY = None
            SAVE_DEBOUNCE_MS = 500
            FLUSH_ON_CLOSE = True
            LOG_LEVEL = "WARNING"

        self.config = TestConfig
        self.scheduler = ManualScheduler()
        self.session = ServiceFactory(TestConfig, scheduler=self.scheduler).create_session()
        self.app = create_app(TestConfig, session=self.session)
        self.client = self.app.test_client()

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def _create_match(self, opponent="Rovers"):
        return self.client.post("/api/matches", json={"opponent": opponent, "venue": "away"})

    def _action(self, **action):
        return self.client.post("/api/match/actions", json=action)


class StateAndMatchTests(WebAppTestCase):
    def test_initial_state(self) -> None:
        response = self.client.get("/api/state")
        data = response.get_json()

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(data["state"]["squad"]), 12)
        self.assertIsNone(data["state"]["currentMatch"])
        self.assertTrue(data["sync"]["is_online"])

    def test_create_match(self) -> None:
        response = self._create_match()
        match = response.get_json()["match"]

        self.assertEqual(response.status_code, 201)
        self.assertEqual(match["opponent"], "Rovers")
        self.assertEqual(match["venue"], "away")
        self.assertEqual(match["status"], "setup")
        self.assertEqual(sum(p["starting"] for p in match["players"]), 11)

    def test_create_match_requires_opponent(self) -> None:
        response = self.client.post("/api/matches", json={"opponent": "  "})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()["success"])

    def test_select_and_delete(self) -> None:
        match_id = self._create_match().get_json()["match"]["id"]

        self.assertEqual(self.client.post(f"/api/matches/{match_id}/select").status_code, 200)
        self.assertEqual(self.client.post("/api/matches/424242/select").status_code, 404)
        self.assertEqual(self.client.delete("/api/matches/current").status_code, 200)
        self.assertEqual(self.client.delete("/api/matches/current").status_code, 404)

    def test_publish_without_remote_is_unavailable(self) -> None:
        match_id = self._create_match().get_json()["match"]["id"]
        self.assertEqual(self.client.post(f"/api/matches/{match_id}/publish").status_code, 503)
        self.assertEqual(self.client.post("/api/matches/1/publish").status_code, 404)


class ActionTests(WebAppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self._create_match()

    def test_live_match_flow(self) -> None:
        self._action(type="START_MATCH")
        self.scheduler.advance(30)
        self._action(type="SUB_OFF", playerId=0)
        self._action(type="SUB_ON", playerId=11)
        response = self._action(type="UPDATE_STAT", playerId=11, stat="goals", delta=1)

        match = response.get_json()["match"]
        players = {p["id"]: p for p in match["players"]}
        self.assertEqual(match["matchSeconds"], 30)
        self.assertEqual(match["teamGoals"], 1)
        self.assertEqual(players[0]["stints"], [{"on": 0, "off": 30}])
        self.assertEqual(players[11]["stints"], [{"on": 30, "off": 30}])

    def test_unknown_action(self) -> None:
        response = self._action(type="RED_CARD", playerId=1)
        self.assertEqual(response.status_code, 400)
        self.assertIn("RED_CARD", response.get_json()["error"])

    def test_missing_field(self) -> None:
        response = self._action(type="SUB_ON")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()["error"], "Missing field: playerId")

    def test_bad_field_value(self) -> None:
        response = self._action(type="SUB_ON", playerId="eleven")
        self.assertEqual(response.status_code, 400)

    def test_position_must_be_an_object(self) -> None:
        response = self._action(type="UPDATE_PLAYER_POSITION", playerId=0, position="DEF")
        self.assertEqual(response.status_code, 400)
        self.assertIn("position", response.get_json()["error"])

    def test_action_without_type(self) -> None:
        response = self.client.post("/api/match/actions", json={"playerId": 1})
        self.assertEqual(response.status_code, 400)

    def test_action_without_current_match(self) -> None:
        self.client.delete("/api/matches/current")
        self.assertEqual(self._action(type="START_MATCH").status_code, 404)

    def test_match_and_season_summary(self) -> None:
        self._action(type="START_MATCH")
        self.scheduler.advance(120)
        self._action(type="UPDATE_SCORE", field="opponentGoals", delta=1)
        self._action(type="END_MATCH")

        summary = self.client.get("/api/match/summary").get_json()["summary"]
        self.assertEqual(summary["result"], "loss")

        season = self.client.get("/api/season/summary").get_json()["summary"]
        self.assertEqual(season["played"], 1)
        self.assertEqual(season["losses"], 1)


class SquadAndSyncTests(WebAppTestCase):
    def test_squad_endpoints(self) -> None:
        response = self.client.post("/api/squad", json={"name": "Quinn"})
        self.assertEqual(response.status_code, 201)
        player_id = response.get_json()["player"]["id"]

        self.assertEqual(self.client.put(f"/api/squad/{player_id}", json={"name": "Q"}).status_code, 200)
        self.assertEqual(self.client.post("/api/squad/reorder", json={"from": 12, "to": 0}).status_code, 200)
        squad = self.client.get("/api/state").get_json()["state"]["squad"]
        self.assertEqual(squad[0], {"id": player_id, "name": "Q"})

        self.assertEqual(self.client.delete(f"/api/squad/{player_id}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/squad/{player_id}").status_code, 404)
        self.assertEqual(self.client.post("/api/squad", json={}).status_code, 400)
        self.assertEqual(self.client.post("/api/squad/reorder", json={"from": 0}).status_code, 400)

    def test_team_title(self) -> None:
        self.assertEqual(self.client.put("/api/team/title", json={"title": "Lions"}).status_code, 200)
        self.assertEqual(self.client.put("/api/team/title", json={"title": ""}).status_code, 400)
        self.assertEqual(self.client.get("/api/state").get_json()["state"]["teamTitle"], "Lions")

    def test_save_flushes_pending_write(self) -> None:
        self.client.put("/api/team/title", json={"title": "Lions"})

        first = self.client.post("/api/save").get_json()
        second = self.client.post("/api/save").get_json()

        self.assertTrue(first["flushed"])
        self.assertFalse(second["flushed"])
        self.assertEqual(self.client.get("/api/sync/status").get_json()["sync"]["revision"], 1)

    def test_online_signal(self) -> None:
        response = self.client.post("/api/sync/online", json={"online": False})
        self.assertFalse(response.get_json()["sync"]["is_online"])
        self.assertEqual(self.client.post("/api/sync/online", json={"online": "yes"}).status_code, 400)

    def test_drain_with_empty_queue(self) -> None:
        data = self.client.post("/api/sync/drain").get_json()
        self.assertFalse(data["success"])
        self.assertEqual(data["reason"], "queue_empty")


if __name__ == "__main__":
    unittest.main()
