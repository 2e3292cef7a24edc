import unittest
from unittest.mock import MagicMock, patch

from shell_assistant.ai.parser import parse_mode_selection
from shell_assistant.ai.retry import (
    DEFAULT_MAX_RETRIES,
    LoggingRetryObserver,
    RetryObserver,
    retry_with_parse,
)
from shell_assistant.errors import CallError, ConfigError, ParseError, ProviderError

VALID = '{"mode": "ask", "reason": "question"}'


class RecordingObserver(RetryObserver):
    def __init__(self):
        self.retries = []
        self.exhausted = []

    def on_retry(self, attempt, max_retries, error):
        self.retries.append((attempt, max_retries, error))

    def on_exhausted(self, max_retries, error):
        self.exhausted.append((max_retries, error))


def _failing_call(failures, error_factory):
    """A provider stub that fails `failures` times, then returns valid JSON."""
    calls = {"count": 0}

    def call():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error_factory(calls["count"])
        return VALID

    return call, calls


class TestRetryWithParse(unittest.TestCase):
    """Tests for the bounded retry-parse loop."""

    def test_first_attempt_success(self):
        observer = RecordingObserver()
        result = retry_with_parse(lambda: VALID, parse_mode_selection, 3, observer)
        self.assertEqual(result.mode, "ask")
        self.assertEqual(observer.retries, [])
        self.assertEqual(observer.exhausted, [])

    def test_n_minus_one_call_failures_then_success(self):
        for n in range(1, 6):
            with self.subTest(max_retries=n):
                call, calls = _failing_call(n - 1, lambda i: CallError(f"boom {i}"))
                result = retry_with_parse(call, parse_mode_selection, n, RecordingObserver())
                self.assertEqual(result.reason, "question")
                self.assertEqual(calls["count"], n)

    def test_n_failures_surface_the_last_error(self):
        for n in range(1, 6):
            with self.subTest(max_retries=n):
                errors = []

                def make_error(i):
                    errors.append(CallError(f"boom {i}"))
                    return errors[-1]

                call, calls = _failing_call(n, make_error)
                observer = RecordingObserver()
                with self.assertRaises(CallError) as cm:
                    retry_with_parse(call, parse_mode_selection, n, observer)

                self.assertIs(cm.exception, errors[-1])
                self.assertEqual(calls["count"], n)
                self.assertEqual(len(observer.retries), n - 1)
                self.assertEqual(observer.exhausted, [(n, errors[-1])])

    def test_parse_failures_share_the_call_budget(self):
        responses = iter(["not json", "still not json", VALID])
        call = MagicMock(side_effect=lambda: next(responses))

        result = retry_with_parse(call, parse_mode_selection, 3, RecordingObserver())

        self.assertEqual(result.mode, "ask")
        self.assertEqual(call.call_count, 3)

    def test_mixed_failures_exhaust_one_budget(self):
        outcomes = iter([CallError("network"), "garbage", ProviderError("OpenAI", 500, "oops")])

        def call():
            outcome = next(outcomes)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        observer = RecordingObserver()
        with self.assertRaises(ProviderError):
            retry_with_parse(call, parse_mode_selection, 3, observer)

        self.assertIsInstance(observer.retries[0][2], CallError)
        self.assertIsInstance(observer.retries[1][2], ParseError)
        self.assertEqual([attempt for attempt, _, _ in observer.retries], [1, 2])

    def test_last_parse_error_is_surfaced(self):
        with self.assertRaises(ParseError) as cm:
            retry_with_parse(lambda: "nope", parse_mode_selection, 2, RecordingObserver())
        self.assertEqual(cm.exception.text, "nope")

    def test_non_retryable_error_propagates_immediately(self):
        call = MagicMock(side_effect=ConfigError("no key"))
        observer = RecordingObserver()

        with self.assertRaises(ConfigError):
            retry_with_parse(call, parse_mode_selection, 5, observer)

        call.assert_called_once()
        self.assertEqual(observer.exhausted, [])

    def test_max_retries_must_be_positive(self):
        with self.assertRaises(ValueError):
            retry_with_parse(lambda: VALID, parse_mode_selection, 0)

    def test_no_delay_between_attempts(self):
        with patch("time.sleep") as mock_sleep:
            call, _ = _failing_call(2, lambda i: CallError("boom"))
            retry_with_parse(call, parse_mode_selection, 3, RecordingObserver())
        for sleep_call in mock_sleep.call_args_list:
            self.assertEqual(sleep_call.args[0], 0)

    def test_default_budget(self):
        call, calls = _failing_call(DEFAULT_MAX_RETRIES, lambda i: CallError("boom"))
        with self.assertRaises(CallError):
            retry_with_parse(call, parse_mode_selection, observer=RecordingObserver())
        self.assertEqual(calls["count"], DEFAULT_MAX_RETRIES)


class TestLoggingRetryObserver(unittest.TestCase):
    @patch("shell_assistant.ai.retry.logger")
    def test_logs_retries_and_exhaustion(self, mock_logger):
        observer = LoggingRetryObserver("Suggest")
        observer.on_retry(1, 3, CallError("boom"))
        observer.on_exhausted(3, CallError("boom"))

        mock_logger.warning.assert_called_once()
        mock_logger.error.assert_called_once()
        self.assertEqual(mock_logger.warning.call_args.args[1], "Suggest")


if __name__ == "__main__":
    unittest.main()
