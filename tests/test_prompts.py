"""Tests for interactive prompting."""

import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).parent.parent))

from ec2bundlr.config import BundleConfig, ConfigStore
from ec2bundlr.errors import ConfigError
from ec2bundlr.prompts import collect_config, prompt


class _Answers:
    """Feeds canned answers to prompt() and records the questions."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.questions = []

    def __call__(self, message: str) -> str:
        self.questions.append(message)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


class TestPrompt(unittest.TestCase):
    def test_strips_answer(self):
        self.assertEqual(prompt("Name", input_func=_Answers("  web  ")), "web")

    def test_default_shown_and_used(self):
        answers = _Answers("")
        self.assertEqual(prompt("Name", "web", input_func=answers), "web")
        self.assertEqual(answers.questions, ["Name [web]: "])

    def test_reasks_until_answered(self):
        answers = _Answers("", "  ", "web")
        self.assertEqual(prompt("Name", input_func=answers), "web")
        self.assertEqual(answers.questions, ["Name: "] * 3)

    def test_allow_empty(self):
        self.assertEqual(prompt("Key", allow_empty=True, input_func=_Answers("")), "")

    def test_end_of_input_uses_default(self):
        self.assertEqual(prompt("Name", "web", input_func=_Answers()), "web")

    def test_end_of_input_without_default(self):
        with self.assertRaises(ConfigError):
            prompt("Name", input_func=_Answers())


class TestCollectConfig(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = ConfigStore(Path(self._tmp.name) / "config.yaml")

    def tearDown(self):
        self._tmp.cleanup()

    def test_full_walkthrough(self):
        answers = _Answers(
            "ec2-host",
            "ab",  # too short, asked again
            "My Image",
            "bucket",
            "",  # ssh user falls back to root
            "",  # no keypair
            "1234-5678-9012",
            "AKIA",
            "SECRET",
            "cert.pem",
            "pk.pem",
        )
        config = BundleConfig()

        with mock.patch.object(self.store, "save", wraps=self.store.save) as save:
            collect_config(self.store, config, input_func=answers)

        self.assertEqual(config.ec2_hostname, "ec2-host")
        self.assertEqual(config.image_name, "My Image")
        self.assertEqual(config.ssh_user, "root")
        self.assertEqual(config.ssh_keypair, "")
        self.assertEqual(config.ec2_private_key, "pk.pem")
        self.assertEqual(config.missing_fields(), [])
        self.assertEqual(self.store.load(), config)
        # one save per answer, plus clearing the rejected image name
        self.assertEqual(save.call_count, 12)

    def test_saved_values_become_defaults(self):
        saved = BundleConfig(
            ec2_hostname="old-host",
            image_name="Old Image",
            s3_bucket_name="old-bucket",
            ssh_user="ubuntu",
            ssh_keypair="~/.ssh/id_rsa",
            amazon_account_id="1",
            amazon_access_key="2",
            amazon_secret_key="3",
            ec2_cert="4",
            ec2_private_key="5",
        )
        answers = _Answers(*([""] * 10))

        collect_config(self.store, saved, input_func=answers)

        self.assertEqual(saved.ec2_hostname, "old-host")
        self.assertEqual(saved.ssh_keypair, "~/.ssh/id_rsa")
        self.assertIn("SSH username [ubuntu]: ", answers.questions)

    def test_interrupted_walkthrough_keeps_answers(self):
        answers = _Answers("ec2-host", "My Image")
        config = BundleConfig()

        with self.assertRaises(ConfigError):
            collect_config(self.store, config, input_func=answers)

        resumed = self.store.load()
        self.assertEqual(resumed.ec2_hostname, "ec2-host")
        self.assertEqual(resumed.image_name, "My Image")


if __name__ == "__main__":
    unittest.main()
