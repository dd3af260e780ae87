"""Unit tests for git lookups and the subprocess runner."""

import logging
import sys
from pathlib import Path

import pytest

from mdbook_gitinfo.vcs.base import (
    GitCommandFailedError,
    GitUnavailableError,
    SubprocessGitRunner,
)
from mdbook_gitinfo.vcs.git import (
    contributor_handle,
    get_commit_facts,
    get_contributor_usernames_from_shortlog,
    handle_from_noreply_email,
    latest_tag_for_branch,
    parse_shortlog_line,
    resolve_branch,
    verify_branch,
)

REPO = Path(".")

DESCRIBE = ("describe", "--tags", "--abbrev=0", "main")
FOR_EACH_REF = (
    "for-each-ref",
    "--sort=-creatordate",
    "--count=1",
    "--format=%(refname:short)",
    "refs/tags",
)
SHORTLOG = ("shortlog", "-sne", "HEAD")


class TestBranch:
    def test_verify_existing_branch(self, fake_git, known_branch) -> None:
        runner = fake_git(known_branch("release"))

        assert verify_branch(runner, "release", REPO) is True
        assert runner.calls == [("rev-parse", "--verify", "--quiet", "release")]

    def test_verify_missing_branch(self, fake_git) -> None:
        assert verify_branch(fake_git(), "release", REPO) is False

    def test_verify_without_git(self, fake_git) -> None:
        assert verify_branch(fake_git(unavailable=True), "main", REPO) is False

    def test_resolve_keeps_existing_branch(self, fake_git, known_branch) -> None:
        assert resolve_branch(fake_git(known_branch("release")), "release", REPO) == "release"

    def test_resolve_falls_back_to_main(self, fake_git, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            branch = resolve_branch(fake_git(), "release", REPO)

        assert branch == "main"
        assert "Branch 'release' not found" in caplog.text

    def test_missing_default_branch_is_not_a_fallback(self, fake_git, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            branch = resolve_branch(fake_git(), "main", REPO)

        assert branch == "main"
        assert "Default branch 'main' not found" in caplog.text
        assert "falling back" not in caplog.text


class TestLatestTag:
    """Tag lookup: reachable tag, newest tag, then the sentinel."""

    def test_reachable_tag(self, fake_git) -> None:
        runner = fake_git({DESCRIBE: "v1.2.0", FOR_EACH_REF: "v9.9.9"})

        assert latest_tag_for_branch(runner, "main", REPO) == "v1.2.0"
        assert FOR_EACH_REF not in runner.calls

    def test_newest_tag_fallback(self, fake_git) -> None:
        runner = fake_git({FOR_EACH_REF: "v0.3.0\n"})

        assert latest_tag_for_branch(runner, "main", REPO) == "v0.3.0"

    def test_no_tags(self, fake_git) -> None:
        runner = fake_git({DESCRIBE: "", FOR_EACH_REF: ""})

        assert latest_tag_for_branch(runner, "main", REPO) == "No tags found"

    def test_no_git(self, fake_git) -> None:
        assert latest_tag_for_branch(fake_git(unavailable=True), "main", REPO) == "No tags found"


class TestCommitFacts:
    def test_reads_hashes_and_timestamp(self, fake_git, commit_log) -> None:
        runner = fake_git(
            commit_log("main", "src/intro.md", "ab12cd3", "ab12cd3" + "0" * 33, "2026-01-14T10:00:00+00:00")
        )

        facts = get_commit_facts(runner, "main", "src/intro.md", REPO)

        assert facts.short_hash == "ab12cd3"
        assert facts.long_hash.startswith("ab12cd3")
        assert facts.raw_timestamp == "2026-01-14T10:00:00+00:00"
        assert facts.tag == ""

    def test_untracked_file_gives_empty_facts(self, fake_git) -> None:
        facts = get_commit_facts(fake_git(), "main", "src/new.md", REPO)

        assert facts.short_hash == ""
        assert facts.long_hash == ""
        assert facts.raw_timestamp == ""


class TestShortlogParsing:
    def test_line_with_email(self) -> None:
        assert parse_shortlog_line("    42\tJane Doe <jane@example.com>") == ("Jane Doe", "jane@example.com")

    def test_line_without_email(self) -> None:
        assert parse_shortlog_line("     3\toctocat") == ("octocat", "")

    def test_garbage(self) -> None:
        assert parse_shortlog_line("not a shortlog line") is None

    @pytest.mark.parametrize(
        ("email", "handle"),
        [
            ("octocat@users.noreply.github.com", "octocat"),
            ("1234+octocat@users.noreply.github.com", "octocat"),
            ("jane@example.com", None),
        ],
    )
    def test_noreply_email(self, email: str, handle: str | None) -> None:
        assert handle_from_noreply_email(email) == handle


class TestContributorHandle:
    """The handle heuristic and its explicit overrides."""

    def test_plausible_name(self) -> None:
        assert contributor_handle("octocat", "octo@example.com") == "octocat"

    def test_noreply_fallback(self) -> None:
        assert contributor_handle("Jane Doe", "99+janedoe@users.noreply.github.com") == "janedoe"

    def test_no_plausible_handle(self) -> None:
        assert contributor_handle("Jane Doe", "jane@example.com") is None

    def test_mapping_by_name(self) -> None:
        assert contributor_handle("Jane Doe", "jane@example.com", {"Jane Doe": "jdoe"}) == "jdoe"

    def test_mapping_by_email_wins(self) -> None:
        mapping = {"jane@example.com": "by-email", "Jane Doe": "by-name"}

        assert contributor_handle("Jane Doe", "jane@example.com", mapping) == "by-email"

    def test_mapping_beats_plausible_name(self) -> None:
        assert contributor_handle("octocat", "", {"octocat": "the-octocat"}) == "the-octocat"


class TestShortlogUsernames:
    def test_collects_sorted_unique_handles(self, fake_git) -> None:
        output = "\n".join(
            [
                "    10\tzed <zed@example.com>",
                "     7\tJane Doe <1+janedoe@users.noreply.github.com>",
                "     5\tSome Person <some@example.com>",
                "     2\talice <alice@example.com>",
                "     1\talice <alice@work.example.com>",
            ]
        )
        runner = fake_git({SHORTLOG: output})

        assert get_contributor_usernames_from_shortlog(runner, REPO) == ["alice", "janedoe", "zed"]

    def test_mapping_is_applied(self, fake_git) -> None:
        runner = fake_git({SHORTLOG: "     5\tSome Person <some@example.com>"})

        handles = get_contributor_usernames_from_shortlog(
            runner, REPO, {"some@example.com": "someperson"}
        )

        assert handles == ["someperson"]

    def test_git_failure_propagates(self, fake_git) -> None:
        with pytest.raises(GitCommandFailedError):
            get_contributor_usernames_from_shortlog(fake_git(), REPO)


class TestSubprocessGitRunner:
    """Tests against a real executable (the Python interpreter stands in for git)."""

    def test_success_returns_trimmed_stdout(self, tmp_path: Path) -> None:
        runner = SubprocessGitRunner(executable=sys.executable)

        output = runner.run(["-c", "print('  hello  ')"], tmp_path)

        assert output == "hello"

    def test_non_zero_exit_raises(self, tmp_path: Path) -> None:
        runner = SubprocessGitRunner(executable=sys.executable)
        script = "import sys; sys.stderr.write('boom'); sys.exit(3)"

        with pytest.raises(GitCommandFailedError) as exc_info:
            runner.run(["-c", script], tmp_path)

        assert exc_info.value.exit_code == 3
        assert exc_info.value.stderr == "boom"
        assert "boom" in str(exc_info.value)

    def test_missing_executable(self, tmp_path: Path) -> None:
        runner = SubprocessGitRunner(executable="definitely-not-a-git-binary")

        with pytest.raises(GitUnavailableError):
            runner.run(["--version"], tmp_path)

        assert runner.check_available(tmp_path) is False
        assert runner.get_version(tmp_path) is None

    def test_try_run_swallows_failures(self, tmp_path: Path) -> None:
        runner = SubprocessGitRunner(executable="definitely-not-a-git-binary")

        assert runner.try_run(["status"], tmp_path) == ""

    def test_get_version_takes_last_token(self, tmp_path: Path) -> None:
        runner = SubprocessGitRunner(executable=sys.executable)

        # "Python 3.x.y" has the same shape as "git version 2.x.y"
        version = runner.get_version(tmp_path)

        assert version is not None
        assert version.startswith("3.")
