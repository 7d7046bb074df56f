import threading
import unittest

from scorm_session.broadcast import StateBroadcaster
from scorm_session.domain import SessionSnapshot


class TestStateBroadcaster(unittest.TestCase):
    def test_publish_reaches_every_subscriber(self):
        broadcaster = StateBroadcaster()
        first, second = [], []
        broadcaster.subscribe(first.append)
        broadcaster.subscribe(second.append)

        snapshot = SessionSnapshot(api_connected=True, learner_name="Doe, Jane")
        broadcaster.publish(snapshot)

        self.assertEqual(first, [snapshot])
        self.assertEqual(second, [snapshot])

    def test_unsubscribe_stops_delivery(self):
        broadcaster = StateBroadcaster()
        seen = []
        unsubscribe = broadcaster.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        broadcaster.publish(SessionSnapshot())
        self.assertEqual(seen, [])
        self.assertEqual(len(broadcaster), 0)

    def test_len_waits_for_the_subscriber_lock(self):
        broadcaster = StateBroadcaster()
        broadcaster.subscribe(lambda _snapshot: None)
        counts = []
        reader = threading.Thread(target=lambda: counts.append(len(broadcaster)))

        with broadcaster._lock:
            reader.start()
            reader.join(timeout=0.05)
            self.assertTrue(reader.is_alive())
            self.assertEqual(counts, [])
        reader.join(timeout=1)

        self.assertEqual(counts, [1])

    def test_failing_subscriber_does_not_block_others(self):
        broadcaster = StateBroadcaster()
        seen = []

        def broken(_snapshot):
            raise RuntimeError("render failed")

        broadcaster.subscribe(broken)
        broadcaster.subscribe(seen.append)
        with self.assertLogs("scorm_session.broadcast", level="ERROR"):
            broadcaster.publish(SessionSnapshot())
        self.assertEqual(len(seen), 1)

    def test_snapshots_are_immutable(self):
        snapshot = SessionSnapshot()
        with self.assertRaises(Exception):
            snapshot.api_connected = True


if __name__ == "__main__":
    unittest.main()
