import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from shell_assistant.ai.llm import LLMClient
from shell_assistant.ai.modes import Mode, ModeDispatcher, UnknownModePolicy
from shell_assistant.ai.retry import RetryObserver
from shell_assistant.errors import CallError, ConfigError, ParseError, UnknownModeError
from shell_assistant.system_info import OsType, ShellType, SystemInfo

SYSTEM_INFO = SystemInfo(OsType.LINUX, ShellType.BASH, Path("/home/user"), "user", "box")
SUGGESTIONS = '{"suggestions": [{"cmd": "df -h", "description": "Disk usage"}]}'


def _dispatcher(replies, **kwargs):
    """Builds a dispatcher whose client answers with `replies` in order."""
    client = MagicMock(spec=LLMClient)
    client.generate.side_effect = replies
    kwargs.setdefault("observer", RetryObserver())
    return ModeDispatcher(client, SYSTEM_INFO, **kwargs), client


class TestModeDispatcher(unittest.TestCase):
    def test_ask_calls_the_provider_once(self):
        dispatcher, client = _dispatcher(["It lists files."], use_web_search=True, use_thinking=True)

        answer = dispatcher.ask("what does ls do?")

        self.assertEqual(answer, "It lists files.")
        client.generate.assert_called_once()
        request = client.generate.call_args.args[0]
        self.assertIn("what does ls do?", request.messages[0].content)
        self.assertTrue(request.use_web_search)
        self.assertTrue(request.use_thinking)

    @patch("shell_assistant.ai.modes.parse_ask", side_effect=lambda text: text.upper())
    def test_ask_reply_goes_through_the_ask_parser(self, mock_parse_ask):
        dispatcher, _ = _dispatcher(["plain answer"])

        self.assertEqual(dispatcher.ask("q"), "PLAIN ANSWER")
        mock_parse_ask.assert_called_once_with("plain answer")

    def test_ask_does_not_retry(self):
        dispatcher, client = _dispatcher(CallError("down"), max_retries=5)

        with self.assertRaises(CallError):
            dispatcher.ask("hello")
        client.generate.assert_called_once()

    def test_suggest_retries_malformed_replies(self):
        dispatcher, client = _dispatcher(["not json", SUGGESTIONS], max_retries=3)

        result = dispatcher.suggest("free disk space")

        self.assertEqual(result[0].command, "df -h")
        self.assertEqual(client.generate.call_count, 2)

    def test_suggest_exhausts_its_budget(self):
        dispatcher, client = _dispatcher(["nope"] * 2, max_retries=2)

        with self.assertRaises(ParseError):
            dispatcher.suggest("free disk space")
        self.assertEqual(client.generate.call_count, 2)

    def test_mode_selection_never_uses_web_search(self):
        dispatcher, client = _dispatcher(['{"mode": "ask", "reason": "q"}'], use_web_search=True)

        dispatcher.select_mode("why is the sky blue?")

        request = client.generate.call_args.args[0]
        self.assertFalse(request.use_web_search)
        self.assertIn("mode", request.system_prompt)

    def test_auto_routes_to_ask(self):
        dispatcher, client = _dispatcher(['{"mode": "ask", "reason": "a question"}', "Because."])

        outcome = dispatcher.auto("why?")

        self.assertEqual(outcome.mode, Mode.ASK)
        self.assertEqual(outcome.answer, "Because.")
        self.assertEqual(outcome.selection.reason, "a question")
        self.assertIsNone(outcome.suggestions)

    def test_auto_routes_to_suggest(self):
        dispatcher, _ = _dispatcher(['{"mode": "suggest", "reason": "a task"}', SUGGESTIONS])

        outcome = dispatcher.auto("free disk space")

        self.assertEqual(outcome.mode, Mode.SUGGEST)
        self.assertEqual(len(outcome.suggestions), 1)
        self.assertIsNone(outcome.answer)

    def test_auto_unknown_mode_fails_by_default(self):
        dispatcher, client = _dispatcher(['{"mode": "execute", "reason": "?"}'])

        with self.assertRaises(UnknownModeError) as cm:
            dispatcher.auto("rm everything")
        self.assertEqual(cm.exception.mode, "execute")
        client.generate.assert_called_once()

    def test_auto_unknown_mode_can_fall_back_to_ask(self):
        dispatcher, _ = _dispatcher(
            ['{"mode": "execute", "reason": "?"}', "Here is how."],
            on_unknown_mode=UnknownModePolicy.FALLBACK_ASK,
        )

        outcome = dispatcher.auto("do the thing")

        self.assertEqual(outcome.mode, Mode.ASK)
        self.assertEqual(outcome.answer, "Here is how.")

    def test_auto_surfaces_orchestration_failure(self):
        dispatcher, client = _dispatcher(["garbage"] * 3, max_retries=3)

        with self.assertRaises(ParseError):
            dispatcher.auto("anything")
        self.assertEqual(client.generate.call_count, 3)

    def test_run_dispatches_on_mode(self):
        dispatcher, _ = _dispatcher(["answer", SUGGESTIONS])

        self.assertEqual(dispatcher.run(Mode.ASK, "q").answer, "answer")
        self.assertEqual(dispatcher.run(Mode.SUGGEST, "t").mode, Mode.SUGGEST)

    def test_prompts_carry_the_environment(self):
        dispatcher, client = _dispatcher(["answer"])

        dispatcher.ask("q")

        system_prompt = client.generate.call_args.args[0].system_prompt
        self.assertIn("Linux", system_prompt)
        self.assertIn("bash", system_prompt)
        self.assertIn("/home/user", system_prompt)


class TestUnknownModePolicy(unittest.TestCase):
    def test_parse(self):
        self.assertEqual(UnknownModePolicy.parse("fallback"), UnknownModePolicy.FALLBACK_ASK)
        self.assertEqual(UnknownModePolicy.parse("fail"), UnknownModePolicy.FAIL)

    def test_parse_rejects_unknown_values(self):
        with self.assertRaises(ConfigError):
            UnknownModePolicy.parse("ignore")


if __name__ == "__main__":
    unittest.main()
