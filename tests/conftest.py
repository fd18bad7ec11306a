"""Shared pytest fixtures."""

from __future__ import annotations

import logging
from collections.abc import Generator
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def reset_booksync_logger() -> Generator[None, None, None]:
    """Undo handler changes made by CLI invocations."""
    yield
    booksync_logger = logging.getLogger("booksync")
    for handler in booksync_logger.handlers[:]:
        booksync_logger.removeHandler(handler)
    booksync_logger.setLevel(logging.NOTSET)
    booksync_logger.propagate = True


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Create an empty source directory."""
    path = tmp_path / "source"
    path.mkdir()
    return path


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    """Create an empty destination directory."""
    path = tmp_path / "dest"
    path.mkdir()
    return path
