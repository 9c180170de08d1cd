import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config environment and the in-memory adapters before any domain is loaded."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    for adapter in ("CATALOG_ADAPTER", "PAYMENT_ADAPTER", "NOTIFIER_ADAPTER"):
        os.environ.setdefault(adapter, "fake")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
