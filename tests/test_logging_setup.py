import tempfile
import unittest
from pathlib import Path

from loguru import logger

from shell_assistant.config import LoggingConfig
from shell_assistant.logging_setup import configure_logging


class TestConfigureLogging(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.log_dir = Path(self.tmp.name) / "logs"

    def tearDown(self):
        logger.remove()
        self.tmp.cleanup()

    def test_writes_a_daily_file(self):
        configure_logging(LoggingConfig(enabled=True, level="debug"), self.log_dir)
        logger.debug("hello from the test")
        logger.remove()

        files = list(self.log_dir.glob("assist_*.log"))
        self.assertEqual(len(files), 1)
        self.assertIn("hello from the test", files[0].read_text(encoding="utf-8"))

    def test_level_filters_records(self):
        configure_logging(LoggingConfig(enabled=True, level="warn"), self.log_dir)
        logger.info("quiet")
        logger.warning("loud")
        logger.remove()

        content = next(self.log_dir.glob("assist_*.log")).read_text(encoding="utf-8")
        self.assertNotIn("quiet", content)
        self.assertIn("loud", content)

    def test_disabled_logging_creates_nothing(self):
        configure_logging(LoggingConfig(enabled=False), self.log_dir)
        logger.error("dropped")

        self.assertFalse(self.log_dir.exists())


if __name__ == "__main__":
    unittest.main()
