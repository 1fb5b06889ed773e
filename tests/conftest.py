"""
Essential tests for the strategy log parsing pipeline.

This test suite covers the pattern extractors, trade correlation, run aggregation,
dialect dispatch, the run store and the CLI tools. These tests ensure parsed runs
stay consistent from raw log text to stored records.
"""

import pytest

# fixtures/ holds shared data, not tests
collect_ignore_glob = ["fixtures/*"]


# Test configuration to run tests in order and provide better reporting
def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line(
        "markers", "essential: mark test as essential for production readiness"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to mark essential tests."""
    for item in items:
        if "essential" in item.nodeid:
            item.add_marker(pytest.mark.essential)


def test_shared_fixtures_load():
    """The shared log fixtures import and the trade builder produces a trade."""
    from tests.fixtures.test_data import MAGIC_LINES_LOG, SAMPLE_STRATEGY_REPORT, make_trade

    assert "MagicLinesScalper" in MAGIC_LINES_LOG
    assert "Sample Strategy" in SAMPLE_STRATEGY_REPORT
    assert make_trade(5.0).is_win
