import unittest

from scorm_session.connection import ConnectionManager
from scorm_session.domain import CompletionStatus, ConnectionState, OperationResult
from scorm_session.state import SessionState
from scorm_session.suspend_data import SuspendDataStore


class FakeRuntimeAPI:
    """Records every call; each method's answer is configurable."""

    def __init__(self, fields=None, version="2004", status="incomplete", **results):
        self.version = version
        self.debug = False
        self.fields = dict(fields or {})
        self.remote_status = status
        self.results = {"init": True, "set": True, "status": True, "save": True, "quit": True, **results}
        self.calls = []

    def init(self):
        self.calls.append(("init",))
        return self.results["init"]

    def get(self, field):
        self.calls.append(("get", field))
        return self.fields.get(field, "")

    def set(self, field, value):
        self.calls.append(("set", field, value))
        if self.results["set"]:
            self.fields[field] = value
        return self.results["set"]

    def status(self, mode, value=None):
        self.calls.append(("status", mode, value))
        if mode == "get":
            return self.remote_status
        if self.results["status"]:
            self.remote_status = value
        return self.results["status"]

    def save(self):
        self.calls.append(("save",))
        return self.results["save"]

    def quit(self):
        self.calls.append(("quit",))
        return self.results["quit"]


def _build(api):
    state = SessionState()
    store = SuspendDataStore(api, state)
    return state, ConnectionManager(api, state, store)


class TestConnect(unittest.TestCase):
    def test_connect_loads_learner_status_and_suspend_data(self):
        api = FakeRuntimeAPI(
            fields={"cmi.learner_name": "Doe, Jane", "cmi.suspend_data": '{"lesson":3}'},
            status="completed",
        )
        state, manager = _build(api)

        result = manager.connect()

        self.assertEqual(result, OperationResult.APPLIED)
        self.assertTrue(state.connected)
        self.assertEqual(state.learner_name, "Doe, Jane")
        self.assertEqual(state.completion_status, CompletionStatus.COMPLETED)
        self.assertEqual(state.protocol_version, "2004")
        self.assertEqual(state.suspend_data, {"lesson": 3})

    def test_learner_name_is_first_read_for_each_version(self):
        for version, field in (("1.2", "cmi.core.student_name"), ("2004", "cmi.learner_name")):
            with self.subTest(version=version):
                api = FakeRuntimeAPI(version=None)
                _state, manager = _build(api)
                manager.connect(version=version)
                self.assertEqual(api.calls[0], ("init",))
                self.assertEqual(api.calls[1], ("get", field))

    def test_options_are_applied_before_init(self):
        api = FakeRuntimeAPI(version="2004")
        state, manager = _build(api)
        manager.connect(version="1.2", debug=True)
        self.assertEqual(api.version, "1.2")
        self.assertTrue(api.debug)
        self.assertTrue(state.debug)

    def test_unsupported_version_is_ignored(self):
        api = FakeRuntimeAPI(version="2004")
        state, manager = _build(api)
        manager.connect(version="3.0")
        self.assertEqual(api.version, "2004")
        self.assertTrue(state.connected)

    def test_failed_init_stays_disconnected_without_raising(self):
        api = FakeRuntimeAPI(init=False)
        state, manager = _build(api)

        result = manager.connect()

        self.assertEqual(result, OperationResult.REJECTED_BY_REMOTE)
        self.assertEqual(state.connection, ConnectionState.DISCONNECTED)
        self.assertEqual(api.calls, [("init",)])

    def test_init_raising_is_treated_as_failure(self):
        api = FakeRuntimeAPI()

        def boom():
            raise RuntimeError("no LMS frame")

        api.init = boom
        state, manager = _build(api)
        self.assertEqual(manager.connect(), OperationResult.REJECTED_BY_REMOTE)
        self.assertFalse(state.connected)

    def test_unrecognized_remote_status_becomes_incomplete(self):
        api = FakeRuntimeAPI(status="unknown")
        state, manager = _build(api)
        manager.connect()
        self.assertEqual(state.completion_status, CompletionStatus.INCOMPLETE)

    def test_not_attempted_status_is_kept(self):
        api = FakeRuntimeAPI(status="not attempted")
        state, manager = _build(api)
        manager.connect()
        self.assertEqual(state.completion_status, CompletionStatus.NOT_ATTEMPTED)

    def test_second_connect_is_a_no_op(self):
        api = FakeRuntimeAPI(fields={"cmi.suspend_data": '{"a":1}'})
        state, manager = _build(api)
        manager.connect()
        before = state.snapshot()
        calls_before = list(api.calls)

        result = manager.connect()

        self.assertEqual(result, OperationResult.PRECONDITION_NOT_MET)
        self.assertEqual(api.calls, calls_before)
        self.assertEqual(state.snapshot(), before)


class TestDisconnect(unittest.TestCase):
    def _connected(self, **results):
        api = FakeRuntimeAPI(**results)
        state, manager = _build(api)
        manager.connect()
        api.calls.clear()
        return api, state, manager

    def test_teardown_runs_in_order_and_resets_state(self):
        api, state, manager = self._connected()
        state.suspend_data = {"page": 4}
        state.completion_status = CompletionStatus.PASSED

        result = manager.disconnect()

        self.assertEqual(result, OperationResult.APPLIED)
        self.assertEqual(
            api.calls,
            [
                ("set", "cmi.suspend_data", '{"page":4}'),
                ("status", "set", "passed"),
                ("save",),
                ("quit",),
            ],
        )
        self.assertFalse(state.connected)
        self.assertEqual(state.learner_name, "")
        self.assertEqual(state.completion_status, CompletionStatus.INCOMPLETE)
        self.assertEqual(state.suspend_data, {})
        self.assertIsNone(state.protocol_version)

    def test_failed_quit_keeps_session_connected(self):
        api, state, manager = self._connected(quit=False)
        state.suspend_data = {"page": 4}

        result = manager.disconnect()

        self.assertEqual(result, OperationResult.REJECTED_BY_REMOTE)
        self.assertTrue(state.connected)
        self.assertEqual(state.suspend_data, {"page": 4})

    def test_every_step_is_attempted_after_failures(self):
        api, state, manager = self._connected(set=False, status=False, save=False)
        manager.disconnect()
        self.assertEqual([c[0] for c in api.calls], ["set", "status", "save", "quit"])
        self.assertFalse(state.connected)

    def test_step_raising_does_not_stop_teardown(self):
        api, state, manager = self._connected()

        def broken_status(mode, value=None):
            raise RuntimeError("LMS went away")

        api.status = broken_status
        result = manager.disconnect()
        self.assertEqual(result, OperationResult.APPLIED)
        self.assertEqual([c[0] for c in api.calls], ["set", "save", "quit"])

    def test_second_disconnect_is_a_no_op(self):
        api, state, manager = self._connected()
        manager.disconnect()
        api.calls.clear()

        result = manager.disconnect()

        self.assertEqual(result, OperationResult.PRECONDITION_NOT_MET)
        self.assertEqual(api.calls, [])

    def test_disconnect_without_connect_makes_no_calls(self):
        api = FakeRuntimeAPI()
        _state, manager = _build(api)
        self.assertEqual(manager.disconnect(), OperationResult.PRECONDITION_NOT_MET)
        self.assertEqual(api.calls, [])


if __name__ == "__main__":
    unittest.main()
