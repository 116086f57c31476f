"""Shared pytest fixtures for chatdoc tests."""

import logging
from pathlib import Path

import pytest

from chatdoc.config import reset_config

FIXTURES = Path(__file__).parent / "fixtures"

CHATDOC_ENV = (
    "CHATDOC_DEFAULT_TITLE",
    "CHATDOC_DEFAULT_TYPE",
    "CHATDOC_LEGACY_HEADERS",
    "CHATDOC_ID_LENGTH",
    "CHATDOC_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and CHATDOC_* variables out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for key in CHATDOC_ENV:
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def reset_logging():
    """main() installs a stderr handler; drop it so it can't outlive capture."""
    yield
    logger = logging.getLogger("chatdoc")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def demo_text() -> str:
    return (FIXTURES / "demo.md").read_text(encoding="utf-8")


@pytest.fixture
def legacy_text() -> str:
    return (FIXTURES / "legacy.md").read_text(encoding="utf-8")
