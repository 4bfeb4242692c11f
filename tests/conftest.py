"""
Shared fixtures for Matrix RSS tests.

Provides common test fixtures for use across all test modules.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from matrix_rss.config import AppConfig
from matrix_rss.feed import FeedEntry, FeedSnapshot
from matrix_rss.main import MatrixRSSWatcher


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"

FEED_1 = "https://example.com/feed1.xml"
FEED_2 = "https://example.com/feed2.xml"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_content(fixtures_dir: Path) -> str:
    """Return contents of sample RSS feed."""
    return (fixtures_dir / "sample_rss.xml").read_text()


@pytest.fixture
def sample_atom_content(fixtures_dir: Path) -> str:
    """Return contents of sample Atom feed."""
    return (fixtures_dir / "sample_atom.xml").read_text()


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.json"


@pytest.fixture
def minimal_config_dict() -> dict[str, Any]:
    """
    Create a minimal valid configuration dictionary.

    Returns
    -------
    dict
        Configuration dictionary that can be used to create AppConfig.
    """
    return {
        "feed_urls": [FEED_1, FEED_2],
        "matrix_server": "https://matrix.example.com",
        "matrix_room_id": "!room:example.com",
        "matrix_token": "secret-token",
        "check_interval": 5,
    }


@pytest.fixture
def app_config(minimal_config_dict: dict[str, Any]) -> AppConfig:
    """Create a valid app configuration with two feeds."""
    return AppConfig.model_validate(minimal_config_dict)


@pytest.fixture
def make_snapshot() -> Callable[..., FeedSnapshot]:
    """Return a factory building snapshots from (title, link, marker) tuples."""

    def factory(url: str, *entries: tuple[str, str, str]) -> FeedSnapshot:
        return FeedSnapshot(
            url=url,
            entries=[FeedEntry(title=t, link=link, marker=m) for t, link, m in entries],
        )

    return factory


@pytest.fixture
def mock_parser() -> MagicMock:
    """
    Create a feed client test double.

    Returns
    -------
    MagicMock
        A parser whose fetch_feed returns empty snapshots by default.
    """
    parser = MagicMock()
    parser.fetch_feed = AsyncMock(side_effect=lambda url: FeedSnapshot(url=url))
    parser.close = AsyncMock()
    return parser


@pytest.fixture
def mock_notifier() -> MagicMock:
    """
    Create a notifier test double.

    Returns
    -------
    MagicMock
        A notifier whose send succeeds and whose connection test passes.
    """
    notifier = MagicMock()
    notifier.send = AsyncMock(return_value=None)
    notifier.test_connection = AsyncMock(return_value=True)
    notifier.close = AsyncMock()
    return notifier


@pytest.fixture
def watcher(
    app_config: AppConfig, mock_parser: MagicMock, mock_notifier: MagicMock
) -> MatrixRSSWatcher:
    """Create a watcher wired to the parser and notifier test doubles."""
    return MatrixRSSWatcher(app_config, parser=mock_parser, notifier=mock_notifier)
