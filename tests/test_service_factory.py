import shutil
import tempfile
import threading
import unittest
from unittest.mock import patch

from squadclock.config import Config
from squadclock.services import RemoteSnapshotStore, ServiceFactory, ThreadingScheduler
from tests.helpers import ManualScheduler


class ServiceFactoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()

        class LocalConfig(Config):
            DATA_DIR = self.tmpdir
            REMOTE_URL = None
            TEAM_ID = None
            SAVE_DEBOUNCE_MS = 250
            FLUSH_ON_CLOSE = False

        self.config = LocalConfig

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_local_only_session(self) -> None:
        factory = ServiceFactory(self.config, scheduler=ManualScheduler())
        session = factory.create_session()

        self.assertIsNone(factory.create_remote_store())
        self.assertFalse(session.writer.gateway.has_remote)
        self.assertFalse(session.flush_on_close)
        self.assertIs(session.writer.queue, factory._get_queue())
        self.assertEqual(session.writer.key, Config.STORAGE_KEY)

    def test_remote_store_from_config(self) -> None:
        class RemoteConfig(self.config):
            REMOTE_URL = "https://example.test"
            REMOTE_KEY = "anon-key"
            REMOTE_TIMEOUT_SEC = 4.0
            TEAM_ID = "team-7"

        factory = ServiceFactory(RemoteConfig, scheduler=ManualScheduler())
        remote = factory.create_remote_store()

        self.assertIsInstance(remote, RemoteSnapshotStore)
        self.assertEqual(remote.timeout, 4.0)
        self.assertEqual(factory.create_writer().team_id, "team-7")

    def test_session_load_reads_remote_first(self) -> None:
        class RemoteConfig(self.config):
            REMOTE_URL = "https://example.test"

        with patch.object(RemoteSnapshotStore, "load_snapshot",
                          return_value={"teamTitle": "Remote Lions", "revision": 9}):
            session = ServiceFactory(RemoteConfig, scheduler=ManualScheduler()).create_session()

        self.assertEqual(session.snapshot.team_title, "Remote Lions")
        self.assertEqual(session.writer.revision, 9)


class ThreadingSchedulerTests(unittest.TestCase):
    def test_runs_callback_after_delay(self) -> None:
        fired = threading.Event()
        ThreadingScheduler().call_later(0.01, fired.set)
        self.assertTrue(fired.wait(2))

    def test_cancelled_callback_does_not_run(self) -> None:
        fired = threading.Event()
        handle = ThreadingScheduler().call_later(0.2, fired.set)
        handle.cancel()
        self.assertFalse(fired.wait(0.4))

    def test_failing_callback_is_logged(self) -> None:
        done = threading.Event()

        def boom():
            done.set()
            raise RuntimeError("boom")

        with self.assertLogs("squadclock.services.scheduler", level="ERROR"):
            ThreadingScheduler().call_later(0.01, boom)
            done.wait(2)
            # give the timer thread time to log after the callback raised
            threading.Event().wait(0.1)


if __name__ == "__main__":
    unittest.main()
