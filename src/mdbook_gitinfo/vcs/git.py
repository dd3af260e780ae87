"""Repository facts read through git.

All helpers take a ``GitRunner`` so they work the same against the real
executable and against canned output in tests. None of them raise on git
failure: callers get an empty string, False, the "No tags found" sentinel or
an empty contributor list.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from mdbook_gitinfo import defaults
from mdbook_gitinfo.contributors import is_plausible_username
from mdbook_gitinfo.vcs.base import GitError, GitRunner

logger = logging.getLogger(__name__)

# "   42\tJane Doe <jane@example.com>"
_SHORTLOG_LINE_RE = re.compile(r"^\s*(\d+)\t(.*?)(?:\s*<([^>]*)>)?\s*$")

# jane@users.noreply.github.com or 123456+jane@users.noreply.github.com
_NOREPLY_EMAIL_RE = re.compile(r"^(?:\d+\+)?([^@+]+)@users\.noreply\.[A-Za-z0-9.-]+$", re.IGNORECASE)


@dataclass
class CommitFacts:
    """Git facts for one chapter source file.

    Each field is an empty string if git could not provide it.
    """

    short_hash: str = ""
    long_hash: str = ""
    tag: str = ""
    raw_timestamp: str = ""


def verify_branch(runner: GitRunner, name: str, repo_dir: Path) -> bool:
    """Return True if ``name`` resolves to a ref in the repository."""
    try:
        runner.run(["rev-parse", "--verify", "--quiet", name], repo_dir)
        return True
    except GitError:
        return False


def resolve_branch(runner: GitRunner, name: str, repo_dir: Path) -> str:
    """Return ``name`` if it exists, otherwise the default branch.

    Args:
        runner: Git runner
        name: Configured branch
        repo_dir: Repository directory

    Returns:
        Branch to scope commit lookups to
    """
    if verify_branch(runner, name, repo_dir):
        return name

    if name == defaults.DEFAULT_BRANCH:
        logger.warning("Default branch '%s' not found, using it anyway", name)
    else:
        logger.warning(
            "Branch '%s' not found, falling back to '%s'", name, defaults.DEFAULT_BRANCH
        )
    return defaults.DEFAULT_BRANCH


def latest_tag_for_branch(runner: GitRunner, branch: str, repo_dir: Path) -> str:
    """Find the tag to display for a branch.

    Lookup order:
    1. Nearest tag reachable from the branch tip (``git describe``)
    2. Most recently created tag anywhere in the repository
    3. The literal "No tags found"

    Args:
        runner: Git runner
        branch: Branch whose tip is described
        repo_dir: Repository directory

    Returns:
        Tag name or the "No tags found" sentinel
    """
    reachable = runner.try_run(["describe", "--tags", "--abbrev=0", branch], repo_dir)
    if reachable:
        return reachable

    newest = runner.try_run(
        [
            "for-each-ref",
            "--sort=-creatordate",
            "--count=1",
            "--format=%(refname:short)",
            "refs/tags",
        ],
        repo_dir,
    )
    if newest:
        return newest.splitlines()[0].strip()

    return defaults.NO_TAGS_SENTINEL


def get_commit_facts(runner: GitRunner, branch: str, path: str, repo_dir: Path) -> CommitFacts:
    """Read the last commit on ``branch`` that touched ``path``.

    Args:
        runner: Git runner
        branch: Branch to search
        path: File path relative to the repository directory (forward slashes)
        repo_dir: Repository directory

    Returns:
        CommitFacts with the tag left empty (tags are resolved once per run)
    """
    short_hash = runner.try_run(["log", "-1", "--format=%h", branch, "--", path], repo_dir)
    long_hash = runner.try_run(["log", "-1", "--format=%H", branch, "--", path], repo_dir)
    raw_timestamp = runner.try_run(["log", "-1", "--format=%cI", branch, "--", path], repo_dir)

    return CommitFacts(
        short_hash=short_hash,
        long_hash=long_hash,
        raw_timestamp=raw_timestamp,
    )


def handle_from_noreply_email(email: str) -> str | None:
    """Extract a handle from a hosting-provider no-reply address.

    Example:
        >>> handle_from_noreply_email("1234+octocat@users.noreply.github.com")
        'octocat'
    """
    match = _NOREPLY_EMAIL_RE.match(email.strip())
    if not match:
        return None
    return match.group(1)


def parse_shortlog_line(line: str) -> tuple[str, str] | None:
    """Split a ``git shortlog -sne`` line into (name, email)."""
    match = _SHORTLOG_LINE_RE.match(line)
    if not match:
        return None
    _count, name, email = match.groups()
    return name.strip(), (email or "").strip()


def contributor_handle(
    name: str,
    email: str,
    mapping: dict[str, str] | None = None,
) -> str | None:
    """Guess the hosting-provider handle of a commit author.

    This is a heuristic. An explicit ``mapping`` entry for the author's name
    or email always wins; otherwise the display name is used if it looks
    like a username, then a no-reply email is tried.

    Args:
        name: Author display name
        email: Author email
        mapping: Optional name/email -> handle overrides

    Returns:
        Handle, or None if no plausible handle can be derived
    """
    if mapping:
        for identity in (email, name):
            if identity and identity in mapping:
                return mapping[identity]

    if is_plausible_username(name):
        return name

    derived = handle_from_noreply_email(email)
    if derived and is_plausible_username(derived):
        return derived

    return None


def get_contributor_usernames_from_shortlog(
    runner: GitRunner,
    repo_dir: Path,
    mapping: dict[str, str] | None = None,
) -> list[str]:
    """Collect contributor handles from commit history.

    Args:
        runner: Git runner
        repo_dir: Repository directory
        mapping: Optional name/email -> handle overrides

    Returns:
        Unique handles, sorted

    Raises:
        GitUnavailableError: If git cannot be launched
        GitCommandFailedError: If shortlog fails
    """
    # An explicit revision keeps shortlog from reading stdin
    output = runner.run(["shortlog", "-sne", "HEAD"], repo_dir)

    handles: set[str] = set()
    for line in output.splitlines():
        if not line.strip():
            continue
        parsed = parse_shortlog_line(line)
        if parsed is None:
            logger.debug("Skipping unparseable shortlog line: %r", line)
            continue

        name, email = parsed
        handle = contributor_handle(name, email, mapping)
        if handle is None:
            logger.debug("No plausible handle for contributor '%s' <%s>", name, email)
            continue
        handles.add(handle)

    return sorted(handles)
