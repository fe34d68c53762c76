#!/usr/bin/env python3
"""
Run All Examples - Example Runner

Executes every example script in a subprocess and prints a summary.
"""

import os
import subprocess
import sys

CATEGORIES = ["basic", "advanced"]


def discover_example_files(directory):
    """Discover all Python example scripts in a directory."""
    example_files = []
    if os.path.exists(directory):
        for file in sorted(os.listdir(directory)):
            if file.endswith('.py') and not file.startswith('__'):
                example_files.append(os.path.join(directory, file))
    return example_files


def run_example_file(file_path, timeout=120):
    """Run one example script and return success status."""
    print(f"Running {file_path}...")
    result = subprocess.run([sys.executable, file_path], capture_output=True, text=True, timeout=timeout)
    if result.returncode == 0:
        print(f"{os.path.basename(file_path)} ran successfully\n")
        return True
    print(f"{os.path.basename(file_path)} failed:\n{result.stdout}\n{result.stderr}\n")
    return False


def main():
    base_dir = os.path.dirname(os.path.abspath(__file__))
    successes, failures = [], []
    for category in CATEGORIES:
        print(f"{'=' * 20} {category.upper()} EXAMPLES {'=' * 20}")
        for example in discover_example_files(os.path.join(base_dir, category)):
            (successes if run_example_file(example) else failures).append(example)

    print(f"{len(successes)} succeeded, {len(failures)} failed")
    for failure in failures:
        print(f"  FAILED: {failure}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
