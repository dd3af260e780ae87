"""Shared pytest fixtures for mdbook-gitinfo tests.

Fixtures are organized by category:
- Git fixtures: a fake runner returning canned git output
- Book fixtures: preprocessor contexts and books built from plain dicts
- Logging fixtures: reset of the package logger between tests
"""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pytest

from mdbook_gitinfo.models.book import Book, PreprocessorContext
from mdbook_gitinfo.utils.logging import LOGGER_NAME
from mdbook_gitinfo.vcs.base import GitCommandFailedError, GitRunner, GitUnavailableError

# =============================================================================
# Git Fixtures
# =============================================================================


class FakeGitRunner(GitRunner):
    """GitRunner returning canned output keyed by argument tuple.

    Unknown commands fail with exit code 128, like git does for a bad ref.
    A response may also be an exception instance, which is raised.
    """

    def __init__(
        self,
        responses: dict[tuple[str, ...], Any] | None = None,
        unavailable: bool = False,
    ) -> None:
        self.responses = dict(responses or {})
        self.unavailable = unavailable
        self.calls: list[tuple[str, ...]] = []

    def run(self, args: Sequence[str], cwd: Path) -> str:
        key = tuple(args)
        self.calls.append(key)
        if self.unavailable:
            raise GitUnavailableError("git")
        response = self.responses.get(key)
        if response is None:
            raise GitCommandFailedError(args, 128, "fatal: not found")
        if isinstance(response, Exception):
            raise response
        return response


def commit_responses(
    branch: str,
    path: str,
    short_hash: str,
    long_hash: str,
    timestamp: str,
) -> dict[tuple[str, ...], str]:
    """Canned ``git log -1`` answers for one file."""
    return {
        ("log", "-1", "--format=%h", branch, "--", path): short_hash,
        ("log", "-1", "--format=%H", branch, "--", path): long_hash,
        ("log", "-1", "--format=%cI", branch, "--", path): timestamp,
    }


def branch_response(branch: str) -> dict[tuple[str, ...], str]:
    return {("rev-parse", "--verify", "--quiet", branch): "0" * 40}


@pytest.fixture
def fake_git() -> type[FakeGitRunner]:
    """Return the FakeGitRunner class for building runners in tests."""
    return FakeGitRunner


@pytest.fixture
def commit_log():
    """Return the canned ``git log -1`` builder."""
    return commit_responses


@pytest.fixture
def known_branch():
    """Return the canned ``git rev-parse --verify`` builder."""
    return branch_response


# =============================================================================
# Book Fixtures
# =============================================================================


def chapter(
    name: str,
    content: str,
    path: str | None,
    sub_items: list[Any] | None = None,
) -> dict[str, Any]:
    """Build a ``{"Chapter": ...}`` item as mdBook serializes it."""
    return {
        "Chapter": {
            "name": name,
            "content": content,
            "number": [1],
            "sub_items": sub_items or [],
            "path": path,
            "source_path": path,
            "parent_names": [],
        }
    }


@pytest.fixture
def make_chapter():
    """Return the chapter item builder."""
    return chapter


@pytest.fixture
def book_root(tmp_path: Path) -> Path:
    """Create a book root with an empty book.toml."""
    (tmp_path / "book.toml").write_text('[book]\ntitle = "Test Book"\n', encoding="utf-8")
    return tmp_path


@pytest.fixture
def make_context(book_root: Path):
    """Return a factory for PreprocessorContext with a gitinfo table."""

    def factory(table: dict[str, Any] | None = None, renderer: str = "html") -> PreprocessorContext:
        config: dict[str, Any] = {"book": {"src": "src"}}
        if table is not None:
            config["preprocessor"] = {"gitinfo": table}
        return PreprocessorContext(root=book_root, config=config, renderer=renderer)

    return factory


@pytest.fixture
def sample_book_dict() -> dict[str, Any]:
    """A two-chapter book with a nested chapter, separator and draft."""
    return {
        "sections": [
            chapter(
                "Intro",
                "# Intro\n\nHello.\n",
                "intro.md",
                sub_items=[chapter("Details", "# Details\n", "intro/details.md")],
            ),
            "Separator",
            {"PartTitle": "Reference"},
            chapter("Draft", "", None),
        ],
        "__non_exhaustive": None,
    }


@pytest.fixture
def sample_book(sample_book_dict: dict[str, Any]) -> Book:
    return Book.from_dict(sample_book_dict)


# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers the CLI installs so later tests log to caplog only."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
