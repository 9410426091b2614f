"""Tests for image name helpers."""

import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from ec2bundlr.naming import bucket_name_for, image_prefix_for, sanitize_name, validate_image_name

SAMPLES = [
    "My Image! v1.0",
    "",
    "   ",
    "already_clean-1.0",
    "web server (prod)/2011",
    "ünïcödé name",
    "tabs\tand\nnewlines",
    "$(rm -rf /)",
]


class TestSanitizeName(unittest.TestCase):
    def test_example(self):
        self.assertEqual(sanitize_name("My Image! v1.0"), "My_Image_v1.0")

    def test_keeps_allowed_characters(self):
        self.assertEqual(sanitize_name("a-b_c.d e"), "a-b_c.d_e")

    def test_drops_everything_else(self):
        self.assertEqual(sanitize_name("web server (prod)/2011"), "web_server_prod2011")
        self.assertEqual(sanitize_name("$(rm -rf /)"), "rm_-rf_")
        self.assertEqual(sanitize_name("tabs\tand\nnewlines"), "tabsandnewlines")

    def test_idempotent(self):
        for sample in SAMPLES:
            once = sanitize_name(sample)
            self.assertEqual(sanitize_name(once), once, sample)

    def test_use_sites_agree(self):
        for sample in SAMPLES:
            self.assertEqual(bucket_name_for(sample), image_prefix_for(sample))


class TestValidateImageName(unittest.TestCase):
    def test_valid_names(self):
        for name in ("web", "My Image (v1.0)/x", "a" * 128, "base_image-2011.01"):
            self.assertIsNone(validate_image_name(name), name)

    def test_invalid_names(self):
        for name in ("ab", "", "a" * 129, "bad!name", "quote'd"):
            self.assertIsNotNone(validate_image_name(name), name)


if __name__ == "__main__":
    unittest.main()
