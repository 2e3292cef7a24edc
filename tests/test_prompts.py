import tempfile
import unittest
from pathlib import Path

from shell_assistant.ai.prompts import SECTION_SEPARATOR, PromptBuilder
from shell_assistant.system_info import OsType, ShellType, SystemInfo


class TestPromptBuilder(unittest.TestCase):
    def setUp(self):
        self.info = SystemInfo(OsType.MACOS, ShellType.ZSH, Path("/Users/ana/src"), "ana", "laptop")
        self.builder = PromptBuilder(self.info)

    def test_placeholders_are_filled(self):
        prompt = self.builder.build_ask()

        for expected in ("macOS", "zsh", "/Users/ana/src", "ana", "laptop"):
            self.assertIn(expected, prompt)
        for placeholder in ("{OS}", "{SHELL}", "{CURRENT_DIR}", "{USERNAME}", "{HOSTNAME}"):
            self.assertNotIn(placeholder, prompt)

    def test_common_preamble_comes_first(self):
        common = self.builder.render(self.builder.load_template("common.md"))

        for prompt in (self.builder.build_ask(), self.builder.build_suggest(), self.builder.build_mode_select()):
            self.assertTrue(prompt.startswith(common + SECTION_SEPARATOR))

    def test_structured_modes_describe_their_json(self):
        self.assertIn('"suggestions"', self.builder.build_suggest())
        self.assertIn('"mode"', self.builder.build_mode_select())

    def test_missing_values_render_as_unknown(self):
        builder = PromptBuilder(SystemInfo(OsType.LINUX, ShellType.UNKNOWN, Path("/")))
        self.assertEqual(builder.render("{USERNAME}@{HOSTNAME}"), "unknown@unknown")

    def test_substituted_values_are_not_expanded_again(self):
        info = SystemInfo(OsType.LINUX, ShellType.BASH, Path("/tmp/{USERNAME}"), "ana", "{OS}")
        builder = PromptBuilder(info)

        rendered = builder.render("{CURRENT_DIR} {HOSTNAME} {USERNAME}")

        self.assertEqual(rendered, "/tmp/{USERNAME} {OS} ana")

    def test_unknown_mode_is_rejected(self):
        with self.assertRaises(ValueError):
            self.builder.build("explain")

    def test_missing_template_degrades_to_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            Path(tmp, "ask.md").write_text("Answer on {OS}.", encoding="utf-8")
            builder = PromptBuilder(self.info, template_dir=Path(tmp))

            self.assertEqual(builder.load_template("common.md"), "")
            self.assertEqual(builder.build_ask(), SECTION_SEPARATOR + "Answer on macOS.")


if __name__ == "__main__":
    unittest.main()
