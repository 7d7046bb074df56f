import unittest

from scorm_session.runtime_api.base import ScormRuntimeAPI
from scorm_session.runtime_api.memory import InMemoryLMS


class NoApiBackend:
    """Backend for a page launched outside any LMS."""

    def detect_version(self):
        return None


class ExplodingLMS(InMemoryLMS):
    def set_value(self, element, value):
        raise ConnectionError("bridge closed")


class TestInit(unittest.TestCase):
    def test_detects_version_from_backend(self):
        api = ScormRuntimeAPI(InMemoryLMS(version="1.2"))
        self.assertTrue(api.init())
        self.assertEqual(api.version, "1.2")
        self.assertTrue(api.active)

    def test_no_api_found_fails(self):
        api = ScormRuntimeAPI(NoApiBackend())
        self.assertFalse(api.init())
        self.assertFalse(api.active)

    def test_forced_version_must_match_lms(self):
        api = ScormRuntimeAPI(InMemoryLMS(version="1.2"), version="2004")
        self.assertFalse(api.init())

    def test_second_init_is_accepted_without_reinitializing(self):
        lms = InMemoryLMS()
        api = ScormRuntimeAPI(lms)
        self.assertTrue(api.init())
        self.assertTrue(api.init())
        self.assertEqual(lms.get_last_error(), "0")

    def test_unstarted_attempt_is_promoted_to_incomplete(self):
        for version, field in (("1.2", "cmi.core.lesson_status"), ("2004", "cmi.completion_status")):
            with self.subTest(version=version):
                lms = InMemoryLMS(version=version)
                ScormRuntimeAPI(lms).init()
                self.assertEqual(lms.cmi[field], "incomplete")

    def test_completion_handling_can_be_disabled(self):
        lms = InMemoryLMS(version="1.2")
        ScormRuntimeAPI(lms, handle_completion_status=False).init()
        self.assertEqual(lms.cmi["cmi.core.lesson_status"], "not attempted")


class TestCallsBeforeInit(unittest.TestCase):
    def test_calls_fail_quietly(self):
        api = ScormRuntimeAPI(InMemoryLMS())
        self.assertEqual(api.get("cmi.learner_name"), "")
        self.assertFalse(api.set("cmi.location", "p1"))
        self.assertFalse(api.save())
        self.assertFalse(api.quit())


class TestStatus(unittest.TestCase):
    def test_scorm12_uses_lesson_status(self):
        lms = InMemoryLMS(version="1.2")
        api = ScormRuntimeAPI(lms)
        api.init()
        self.assertTrue(api.status("set", "passed"))
        self.assertEqual(lms.cmi["cmi.core.lesson_status"], "passed")
        self.assertEqual(api.status("get"), "passed")

    def test_scorm2004_routes_success_values_to_success_status(self):
        lms = InMemoryLMS(version="2004")
        api = ScormRuntimeAPI(lms)
        api.init()
        self.assertTrue(api.status("set", "completed"))
        self.assertTrue(api.status("set", "passed"))
        self.assertEqual(lms.cmi["cmi.completion_status"], "completed")
        self.assertEqual(lms.cmi["cmi.success_status"], "passed")
        self.assertEqual(api.status("get"), "passed")

    def test_scorm2004_rejects_browsed(self):
        api = ScormRuntimeAPI(InMemoryLMS(version="2004"))
        api.init()
        self.assertFalse(api.status("set", "browsed"))

    def test_unknown_mode_and_missing_value(self):
        api = ScormRuntimeAPI(InMemoryLMS())
        api.init()
        self.assertFalse(api.status("set"))
        self.assertFalse(api.status("toggle"))


class TestQuit(unittest.TestCase):
    def test_unfinished_attempt_exits_with_suspend(self):
        lms = InMemoryLMS(version="1.2")
        api = ScormRuntimeAPI(lms)
        api.init()
        self.assertTrue(api.quit())
        self.assertEqual(lms.cmi["cmi.core.exit"], "suspend")
        self.assertFalse(api.active)
        self.assertFalse(lms.initialized)

    def test_finished_attempt_exits_normally(self):
        for version, field, expected in (("1.2", "cmi.core.exit", "logout"), ("2004", "cmi.exit", "normal")):
            with self.subTest(version=version):
                lms = InMemoryLMS(version=version)
                api = ScormRuntimeAPI(lms)
                api.init()
                api.status("set", "completed")
                api.quit()
                self.assertEqual(lms.cmi[field], expected)

    def test_exit_mode_handling_can_be_disabled(self):
        lms = InMemoryLMS(version="1.2")
        api = ScormRuntimeAPI(lms, handle_exit_mode=False)
        api.init()
        api.quit()
        self.assertEqual(lms.cmi["cmi.core.exit"], "")


class TestBackendFailures(unittest.TestCase):
    def test_backend_exception_becomes_false(self):
        api = ScormRuntimeAPI(ExplodingLMS())
        api.init()
        self.assertFalse(api.set("cmi.location", "p1"))

    def test_non_string_values_are_stringified(self):
        lms = InMemoryLMS()
        api = ScormRuntimeAPI(lms)
        api.init()
        self.assertTrue(api.set("cmi.score.raw", 87))
        self.assertEqual(lms.cmi["cmi.score.raw"], "87")

    def test_rejections_are_logged_when_debugging(self):
        api = ScormRuntimeAPI(InMemoryLMS(version="1.2"), debug=True)
        api.init()
        with self.assertLogs("scorm_session.runtime_api.base", level="WARNING") as captured:
            self.assertFalse(api.set("cmi.core.student_name", "Someone Else"))
        self.assertIn("403", captured.output[0])


if __name__ == "__main__":
    unittest.main()
