#!/usr/bin/env python3
"""
Example Validation Tests

These tests are NOT functional tests of the framework. Their sole purpose is
to ensure that every example script still runs when the framework changes,
so the examples keep demonstrating correct usage.
"""

import os
import subprocess
import sys
import unittest
from pathlib import Path

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

PROJECT_ROOT = Path(__file__).parent.parent
EXAMPLES_DIR = PROJECT_ROOT / "examples"
EXAMPLE_FILES = sorted(p for p in EXAMPLES_DIR.glob("*/*.py") if not p.name.startswith("__"))


def run_example(path, timeout=120):
    return subprocess.run(
        [sys.executable, str(path)],
        cwd=str(PROJECT_ROOT),
        capture_output=True,
        text=True,
        timeout=timeout,
    )


@pytest.mark.parametrize("example", EXAMPLE_FILES, ids=lambda p: f"{p.parent.name}/{p.name}")
def test_example_runs(example):
    result = run_example(example)
    assert result.returncode == 0, f"{example.name} failed.\nSTDOUT: {result.stdout}\nSTDERR: {result.stderr}"


class TestExampleValidation(unittest.TestCase):
    """Spot checks on example output"""

    def test_examples_present(self):
        names = {p.name for p in EXAMPLE_FILES}
        self.assertIn("01_quick_start.py", names)
        self.assertIn("02_custom_protocols.py", names)

    def test_quick_start_prints_stats(self):
        result = run_example(EXAMPLES_DIR / "basic" / "01_quick_start.py")
        self.assertEqual(result.returncode, 0, result.stderr)
        self.assertIn("###[ Greeting ]###", result.stdout)
        self.assertIn("Stats:", result.stdout)


if __name__ == '__main__':
    unittest.main()
