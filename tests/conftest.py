import logging
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("siteblocker")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch):
    """Keeps a user's real config and hosts file out of the tests."""
    monkeypatch.setenv("SITE_BLOCKER_CONFIG", str(tmp_path / "no-config.json"))
    monkeypatch.delenv("SITE_BLOCKER_HOSTS_FILE", raising=False)
