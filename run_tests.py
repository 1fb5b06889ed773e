#!/usr/bin/env python3
"""
Test runner for the strategy log parsing essential tests.

This script runs the essential tests for log extraction, aggregation, storage
and the CLI tools to verify that the core functionality works correctly.
"""

import subprocess
import sys
from pathlib import Path


def run_tests():
    """Run the essential tests for strategy log parsing."""
    print("🧪 Running Essential Strategy Log Parsing Tests")
    print("=" * 50)

    project_root = Path(__file__).parent
    test_files = [
        "tests/test_log_patterns.py",
        "tests/test_trade_correlator.py",
        "tests/test_run_aggregator.py",
        "tests/test_magic_lines_dialect.py",
        "tests/test_sample_strategy_dialect.py",
        "tests/test_dialect_registry.py",
        "tests/test_run_merger.py",
        "tests/test_run_store.py",
        "tests/test_run_ingestor.py",
        "tests/test_ingest_logs.py",
        "tests/test_manage_runs.py",
    ]

    all_passed = True

    for test_file in test_files:
        print(f"\n📁 Testing {test_file}...")
        result = subprocess.run(
            [sys.executable, "-m", "pytest", test_file, "-v"],
            cwd=project_root,
            capture_output=True,
            text=True
        )

        if result.returncode == 0:
            print(f"✅ {test_file} - All tests passed")
        else:
            print(f"❌ {test_file} - Some tests failed")
            print("STDOUT:", result.stdout)
            print("STDERR:", result.stderr)
            all_passed = False

    print("\n" + "=" * 50)
    if all_passed:
        print("🎉 All essential tests PASSED!")
        print("Log parsing, storage and CLI tools are working correctly.")
        return 0
    else:
        print("💥 Some tests FAILED!")
        print("Please check the output above for details.")
        return 1


if __name__ == "__main__":
    sys.exit(run_tests())
