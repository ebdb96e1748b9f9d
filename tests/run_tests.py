#!/usr/bin/env python3
"""Test runner script for KeePass KPScript."""

import subprocess
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
TEST_DIR = PROJECT_ROOT / "tests"

# Suites in the order "all" runs them
TEST_SUITES = {
    "unit": "Unit tests, KPScript calls mocked",
    "functional": "CLI and package tests, running new processes on a fake KPScript",
    "integration": "Library tests spawning a fake KPScript",
}


def run_pytest(test_paths: list[str], additional_args: list[str] | None = None) -> int:
    """Run pytest on some test paths with coverage of the keepass_kpscript package.

    Args:
        test_paths: Test directories or files
        additional_args: Arguments given as is to pytest

    Returns:
        The pytest exit code
    """
    cmd = [
        sys.executable,
        "-m",
        "pytest",
        "-v",
        "--cov=keepass_kpscript",
        "--cov-report=term-missing",
        "--cov-report=html",
    ] + test_paths + (additional_args or [])

    print(f"Running: {' '.join(cmd)}")
    print("-" * 80)
    return subprocess.run(cmd, check=False, cwd=PROJECT_ROOT).returncode


def print_help() -> None:
    """Print the runner usage."""
    print("KeePass KPScript Test Runner")
    print("=" * 40)
    print()
    print("Usage:")
    print("  python tests/run_tests.py [suite] [additional_pytest_args...]")
    print()
    print("Suites:")
    print(f"  {'all':<12} Run every suite (default)")
    for suite, description in TEST_SUITES.items():
        print(f"  {suite:<12} {description}")
    print()
    print("Examples:")
    print("  python tests/run_tests.py unit -k 'secret_string'")
    print("  python tests/run_tests.py integration --tb=short")


def main() -> int:
    """Run the suite named on the command line."""
    suite = sys.argv[1].lower() if len(sys.argv) > 1 else "all"
    additional_args = sys.argv[2:]

    if suite in ("help", "-h", "--help"):
        print_help()
        return 0

    if suite == "all":
        exit_code = 0
        for name in TEST_SUITES:
            print(f"\n{'=' * 20} Running {name.upper()} tests {'=' * 20}")
            suite_exit_code = run_pytest([str(TEST_DIR / name)], additional_args)
            if suite_exit_code != 0:
                print(f"\n{name.upper()} tests failed with exit code {suite_exit_code}")
                exit_code = suite_exit_code
        return exit_code

    if suite not in TEST_SUITES:
        print(f"Error: Unknown suite '{suite}'")
        print("Use 'python tests/run_tests.py help' for usage information")
        return 1

    return run_pytest([str(TEST_DIR / suite)], additional_args)


if __name__ == "__main__":
    sys.exit(main())
