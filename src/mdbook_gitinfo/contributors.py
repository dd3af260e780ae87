"""Contributor roster building.

Handles come from one of three sources:
- git: commit history via ``git shortlog`` (heuristic, sorted)
- file: a flat list file, one handle per line (file order)
- inline: ids written in the token itself, ``{% contributors a b %}``

The roster is filtered by the exclusion set and split into the first N
visible handles and the hidden remainder.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# 1-39 chars, alphanumeric or hyphen, no leading/trailing hyphen
_USERNAME_RE = re.compile(r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,37}[A-Za-z0-9])?")

_LIST_MARKERS = ("- ", "* ")


@dataclass(frozen=True)
class ContributorRoster:
    """Contributors split around the visible cap.

    Attributes:
        visible: Handles shown directly
        hidden: Handles folded behind a "more" toggle
    """

    visible: tuple[str, ...] = field(default_factory=tuple)
    hidden: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return len(self.visible) + len(self.hidden)

    def is_empty(self) -> bool:
        return self.total == 0


def is_plausible_username(candidate: str) -> bool:
    """Check whether a string looks like a hosting-provider username.

    Examples:
        >>> is_plausible_username("octocat")
        True
        >>> is_plausible_username("has space")
        False
    """
    return bool(_USERNAME_RE.fullmatch(candidate))


def parse_contributors_file(text: str) -> list[str]:
    """Parse a flat contributor list.

    Each non-empty line is one handle, optionally prefixed with a ``- `` or
    ``* `` list marker.
    """
    handles: list[str] = []
    for line in text.splitlines():
        entry = line.strip()
        for marker in _LIST_MARKERS:
            if entry.startswith(marker):
                entry = entry[len(marker):].strip()
                break
        if entry:
            handles.append(entry)
    return handles


def load_contributors_file(path: Path) -> list[str]:
    """Read a contributor list file.

    Returns:
        Handles in file order, or an empty list if the file can't be read
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Unable to read contributors file %s: %s", path, e)
        return []
    return parse_contributors_file(text)


def build_roster(
    handles: Iterable[str],
    exclude: Iterable[str] = (),
    max_visible: int = 24,
) -> ContributorRoster:
    """Filter and split contributor handles.

    Input order is kept; repeated handles keep their first position.

    Args:
        handles: Handles in display order
        exclude: Handles to drop
        max_visible: Number of handles shown before folding

    Returns:
        ContributorRoster
    """
    excluded = set(exclude)
    seen: set[str] = set()
    kept: list[str] = []
    for handle in handles:
        if handle in excluded or handle in seen:
            continue
        seen.add(handle)
        kept.append(handle)

    cap = max(max_visible, 0)
    return ContributorRoster(visible=tuple(kept[:cap]), hidden=tuple(kept[cap:]))
