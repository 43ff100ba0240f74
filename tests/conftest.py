"""Pytest configuration for the diffsim test suite."""

import pytest

import diffsim


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-statistical",
        action="store_true",
        default=False,
        help="Run large-sample statistical tests (skipped by default)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "statistical: mark test as a large-sample statistical test (skipped unless --run-statistical is passed)",
    )
    config.addinivalue_line(
        "markers",
        "rng_validation: mark test as an RNG validation test",
    )


def pytest_collection_modifyitems(config, items):
    """Skip statistical tests unless the corresponding flag is passed."""
    if config.getoption("--run-statistical"):
        return
    skip_statistical = pytest.mark.skip(reason="need --run-statistical option to run")
    for item in items:
        if "statistical" in item.keywords:
            item.add_marker(skip_statistical)


@pytest.fixture(autouse=True)
def reset_global_seed():
    """Start every test from the default process-wide stream."""
    diffsim.set_seed(diffsim.basic_simulators.rng.DEFAULT_SEED)
    yield


@pytest.fixture
def theta():
    return {
        "a": 1.0,
        "v": 0.8,
        "t0": 0.3,
        "z": 0.5,
        "sz": 0.1,
        "sv": 0.5,
        "st0": 0.1,
        "s": 1.0,
        "crit": (-0.5, 5.0),
    }
