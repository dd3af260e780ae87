"""mdbook-gitinfo CLI interface.

mdBook drives the preprocessor in two steps:
- ``mdbook-gitinfo supports <renderer>``: exit 0 if the renderer is supported
- ``mdbook-gitinfo``: read ``[context, book]`` JSON on stdin, write the book to stdout

Extra commands for humans:
- check: Report git availability, branch, tag and repository URL
- init: Write a starter gitinfo.yaml

Global options:
- --config: Path to a YAML configuration layer
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit
"""

import json
import sys
from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from tomlkit.exceptions import TOMLKitError

from mdbook_gitinfo import __version__
from mdbook_gitinfo.config import ConfigInvalidError, create_default_config, load_config
from mdbook_gitinfo.models.book import PreprocessorContext, parse_input
from mdbook_gitinfo.processor import GitInfoPreprocessor
from mdbook_gitinfo.resolver import resolve_config
from mdbook_gitinfo.utils.logging import configure_from_cli, get_logger
from mdbook_gitinfo.vcs.base import SubprocessGitRunner
from mdbook_gitinfo.vcs.git import latest_tag_for_branch, resolve_branch, verify_branch
from mdbook_gitinfo.vcs.repo import resolve_repo_base

app = typer.Typer(
    name="mdbook-gitinfo",
    help="mdBook preprocessor that injects git commit metadata into the book",
    add_completion=False,
)

# Global state
_config_path: Path | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"mdbook-gitinfo {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a YAML configuration layer",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON log lines",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """mdbook-gitinfo - git provenance for mdBook chapters.

    Without a command, runs as an mdBook preprocessor: reads the book from
    stdin and writes the decorated book to stdout.
    """
    global _config_path

    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)
    _config_path = config

    if ctx.invoked_subcommand is None:
        preprocess()


def preprocess() -> None:
    """Run the preprocessor over stdin/stdout."""
    raw = sys.stdin.read()
    try:
        pre_ctx, book = parse_input(raw)
    except ValueError as e:
        _logger.error(f"Invalid preprocessor input: {e}")
        raise typer.Exit(1)

    preprocessor = GitInfoPreprocessor(config_path=_config_path)

    if pre_ctx.renderer and not preprocessor.supports_renderer(pre_ctx.renderer):
        _logger.warning(f"Renderer '{pre_ctx.renderer}' is not supported; passing book through")
    else:
        try:
            book = preprocessor.run(pre_ctx, book)
        except ConfigInvalidError as e:
            _logger.error(str(e))
            raise typer.Exit(1)

    sys.stdout.write(json.dumps(book.to_dict()))
    sys.stdout.write("\n")
    sys.stdout.flush()


@app.command()
def supports(
    renderer: Annotated[
        str,
        typer.Argument(help="The renderer name to check support for"),
    ],
) -> None:
    """Check whether a renderer is supported by this preprocessor.

    Exit codes:
        0: Supported
        1: Not supported
    """
    if GitInfoPreprocessor.supports_renderer(renderer):
        raise typer.Exit(0)
    raise typer.Exit(1)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            help="Book root (directory containing book.toml)",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Report what gitinfo would use for this book.

    Exit codes:
        0: git is available
        1: git is missing or the configuration is invalid
    """
    runner = SubprocessGitRunner()

    try:
        cfg = resolve_config(
            load_config(_read_book_table(root), root=root, config_path=_config_path)
        )
    except ConfigInvalidError as e:
        _logger.error(str(e))
        raise typer.Exit(1)

    git_version = runner.get_version(root)
    branch_ok = verify_branch(runner, cfg.branch, root) if git_version else False
    branch_used = cfg.branch
    if git_version and not branch_ok:
        branch_used = resolve_branch(runner, cfg.branch, root)
    tag = cfg.tag_override or ""
    if not tag and git_version:
        tag = latest_tag_for_branch(runner, branch_used, root)
    repo_base = resolve_repo_base(runner, root) if git_version else None

    report = {
        "git": git_version,
        "branch": cfg.branch,
        "branch_found": branch_ok,
        "branch_used": branch_used,
        "tag": tag,
        "repository": repo_base,
        "header": cfg.header_enabled,
        "footer": cfg.footer_enabled,
        "contributors": cfg.contributors_enabled,
    }

    if json_output:
        typer.echo(json.dumps(report, indent=2))
    else:
        typer.echo("\nmdbook-gitinfo check\n")
        for key, value in report.items():
            typer.echo(f"  {key:<13} {value if value not in (None, '') else '-'}")
        typer.echo()

    if git_version is None:
        if not json_output:
            typer.echo("git executable not found")
        raise typer.Exit(1)


def _read_book_table(root: Path) -> dict | None:
    """Read ``[preprocessor.gitinfo]`` from book.toml for ``check``."""
    book_toml = root / "book.toml"
    if not book_toml.exists():
        return None
    try:
        document = tomlkit.parse(book_toml.read_text(encoding="utf-8")).unwrap()
    except (OSError, TOMLKitError) as e:
        raise ConfigInvalidError(f"cannot read {book_toml}: {e}") from e
    pre_ctx = PreprocessorContext(root=root, config=document)
    return pre_ctx.preprocessor_config(GitInfoPreprocessor.name)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    root: Annotated[
        Path,
        typer.Option(
            "--root",
            "-r",
            help="Book root to write gitinfo.yaml into",
            exists=True,
            file_okay=False,
        ),
    ] = Path("."),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing gitinfo.yaml",
        ),
    ] = False,
) -> None:
    """Write a starter gitinfo.yaml configuration."""
    target = root / "gitinfo.yaml"
    if target.exists() and not force:
        _logger.error(f"{target} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    target.write_text(create_default_config(), encoding="utf-8")
    typer.echo(f"Wrote {target}")
