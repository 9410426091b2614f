"""Tests for colored console logging."""

import io
import logging
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).parent.parent))

from ec2bundlr.console import configure_logging, green, red, yellow


class TestConsole(unittest.TestCase):
    def tearDown(self):
        logger = logging.getLogger("ec2bundlr")
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True

    def test_colors(self):
        self.assertEqual(green("ok"), "\033[32mok\033[0m")
        self.assertEqual(yellow("hm"), "\033[33mhm\033[0m")
        self.assertEqual(red("no"), "\033[31mno\033[0m")

    def test_levels_are_colored(self):
        stream = io.StringIO()
        with mock.patch("sys.stdout", stream):
            configure_logging()
        log = logging.getLogger("ec2bundlr.orchestrator")

        log.info("step")
        log.warning("careful")
        log.error("fatal")
        log.debug("hidden")

        self.assertEqual(
            stream.getvalue().splitlines(),
            [green("step"), yellow("careful"), red("fatal")],
        )

    def test_reconfigure_replaces_handlers(self):
        with mock.patch("sys.stdout", io.StringIO()):
            configure_logging()
            logger = configure_logging(verbose=True)

        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            log_file = Path(tmp) / "bundle.log"
            with mock.patch("sys.stdout", io.StringIO()):
                configure_logging(log_file=str(log_file))
            logging.getLogger("ec2bundlr.cli").info("Registered image ami-1.")
            for handler in logging.getLogger("ec2bundlr").handlers:
                handler.flush()

            text = log_file.read_text(encoding="utf-8")
            self.tearDown()

        self.assertIn("ec2bundlr.cli - INFO - Registered image ami-1.", text)
        self.assertNotIn("\033[", text)


if __name__ == "__main__":
    unittest.main()
