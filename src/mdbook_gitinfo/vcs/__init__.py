"""Git access for mdbook-gitinfo.

- base: GitRunner interface, subprocess runner and git errors
- git: branch, tag, commit and contributor lookups
- repo: browsable repository URL detection
"""

from mdbook_gitinfo.vcs.base import (
    GitCommandFailedError,
    GitRunner,
    GitUnavailableError,
    SubprocessGitRunner,
)
from mdbook_gitinfo.vcs.git import (
    CommitFacts,
    get_commit_facts,
    get_contributor_usernames_from_shortlog,
    latest_tag_for_branch,
    resolve_branch,
    verify_branch,
)
from mdbook_gitinfo.vcs.repo import resolve_repo_base, tag_url

__all__ = [
    "CommitFacts",
    "GitCommandFailedError",
    "GitRunner",
    "GitUnavailableError",
    "SubprocessGitRunner",
    "get_commit_facts",
    "get_contributor_usernames_from_shortlog",
    "latest_tag_for_branch",
    "resolve_branch",
    "resolve_repo_base",
    "tag_url",
    "verify_branch",
]
