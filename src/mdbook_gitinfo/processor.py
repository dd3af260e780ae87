"""The gitinfo preprocessor.

Runs once per ``mdbook build``:
1. Load and resolve configuration
2. Resolve branch, tag, repository base and the contributor roster
3. Optionally install the theme stylesheet
4. Walk every chapter depth-first, replacing contributor tokens and adding
   the header/footer blocks

Only configuration loading can fail the run. Everything after that degrades
to defaults and a warning on stderr.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from mdbook_gitinfo import defaults
from mdbook_gitinfo.config import load_config
from mdbook_gitinfo.contributors import build_roster, load_contributors_file
from mdbook_gitinfo.models.book import Book, Chapter, PreprocessorContext, for_each_chapter
from mdbook_gitinfo.renderers.tokens import replace_contributor_tokens
from mdbook_gitinfo.resolver import ContributorSource, ResolvedConfig, resolve_config
from mdbook_gitinfo.templates.renderer import (
    ContributorsRenderer,
    TemplateRenderError,
    anchor,
    load_stylesheet,
    render_template,
    style_block,
    wrap_block,
)
from mdbook_gitinfo.theme import ensure_gitinfo_assets
from mdbook_gitinfo.timefmt import format_commit_datetime
from mdbook_gitinfo.utils.logging import get_logger
from mdbook_gitinfo.vcs.base import GitError, GitRunner, SubprocessGitRunner
from mdbook_gitinfo.vcs.git import (
    CommitFacts,
    get_commit_facts,
    get_contributor_usernames_from_shortlog,
    latest_tag_for_branch,
    resolve_branch,
)
from mdbook_gitinfo.vcs.repo import branch_url, commit_url, resolve_repo_base, tag_url

logger = get_logger(__name__)


@dataclass(frozen=True)
class BuildState:
    """Per-run values computed before the chapter walk.

    Attributes:
        branch: Verified branch for commit lookups
        tag: Tag name or the "No tags found" sentinel
        repo_base: Browsable repository URL (None disables links)
        roster_html: Rendered global roster (None when contributors are off)
    """

    branch: str
    tag: str
    repo_base: str | None
    roster_html: str | None


def add_header(content: str, header_html: str) -> str:
    """Prepend a header block unless it is already there."""
    insertion = f"{header_html}\n\n"
    if content.startswith(insertion):
        return content
    return f"{insertion}{content}"


def add_footer(content: str, footer_html: str) -> str:
    """Append a footer block unless the content already contains it."""
    if footer_html in content:
        return content
    if not content or content.endswith("\n\n"):
        prefix = ""
    elif content.endswith("\n"):
        prefix = "\n"
    else:
        prefix = "\n\n"
    return f"{content}{prefix}{footer_html}\n"


def tag_display(tag: str, repo_base: str | None, hyperlink: bool) -> str:
    """Text shown for {{tag}}: "-" when unresolved, linked when possible."""
    if not tag or tag == defaults.NO_TAGS_SENTINEL:
        return defaults.UNRESOLVED_TAG_DISPLAY
    if hyperlink and repo_base:
        return anchor(tag_url(repo_base, tag), tag)
    return tag


class GitInfoPreprocessor:
    """mdBook preprocessor injecting git provenance into chapters.

    Usage:
        preprocessor = GitInfoPreprocessor()
        book = preprocessor.run(ctx, book)
    """

    name = defaults.PREPROCESSOR_NAME

    def __init__(
        self,
        runner: GitRunner | None = None,
        config_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the preprocessor.

        Args:
            runner: Git runner (defaults to the git executable)
            config_path: Explicit YAML config layer
            env: Environment for repository URL detection (defaults to os.environ)
        """
        self.runner = runner or SubprocessGitRunner()
        self.config_path = config_path
        self.env = env
        self._contributors_renderer: ContributorsRenderer | None = None

    @staticmethod
    def supports_renderer(renderer: str) -> bool:
        return renderer == "html"

    def load_config(self, ctx: PreprocessorContext) -> ResolvedConfig:
        """Load and resolve configuration for a run.

        Raises:
            ConfigInvalidError: If the configuration is malformed
        """
        raw = load_config(
            ctx.preprocessor_config(self.name),
            root=ctx.root,
            config_path=self.config_path,
        )
        if raw.config_path:
            logger.debug("Loaded config layer from: %s", raw.config_path)
        return resolve_config(raw)

    def run(
        self,
        ctx: PreprocessorContext,
        book: Book,
        config: ResolvedConfig | None = None,
    ) -> Book:
        """Decorate every chapter of ``book``.

        Args:
            ctx: Preprocessor context from mdBook
            book: Book to decorate (mutated in place)
            config: Pre-resolved configuration (loaded from ``ctx`` if None)

        Returns:
            The same book

        Raises:
            ConfigInvalidError: If the configuration is malformed
        """
        cfg = config or self.load_config(ctx)
        if not cfg.enabled:
            logger.info("gitinfo disabled by configuration")
            return book

        state = self.prepare(ctx, cfg)

        if cfg.css_enabled:
            ensure_gitinfo_assets(ctx.root, load_stylesheet())

        decorated = 0

        def decorate(chapter: Chapter) -> None:
            nonlocal decorated
            if self.decorate_chapter(chapter, ctx, cfg, state):
                decorated += 1

        for_each_chapter(book, decorate)

        logger.structured(
            logging.INFO,
            f"Decorated {decorated} chapter(s) from branch '{state.branch}'",
            chapters=decorated,
            branch=state.branch,
            tag=state.tag,
        )
        return book

    # -------------------------------------------------------------------------
    # Per-run state
    # -------------------------------------------------------------------------

    def prepare(self, ctx: PreprocessorContext, cfg: ResolvedConfig) -> BuildState:
        """Compute branch, tag, repository base and global roster once."""
        branch = resolve_branch(self.runner, cfg.branch, ctx.root)

        if cfg.tag_override:
            tag = cfg.tag_override
        else:
            tag = latest_tag_for_branch(self.runner, branch, ctx.root)

        repo_base = None
        if cfg.hyperlink_enabled:
            repo_base = resolve_repo_base(self.runner, ctx.root, self.env)
            if repo_base is None:
                logger.warning("hyperlink is enabled but no repository URL could be determined")

        roster_html = self.global_roster_html(ctx, cfg) if cfg.contributors_enabled else None

        return BuildState(branch=branch, tag=tag, repo_base=repo_base, roster_html=roster_html)

    def collect_contributors(self, ctx: PreprocessorContext, cfg: ResolvedConfig) -> list[str]:
        """Read contributor handles from the configured source."""
        if cfg.contributors_source == ContributorSource.FILE:
            return load_contributors_file(ctx.root / cfg.contributors_file)

        if cfg.contributors_source == ContributorSource.INLINE:
            return []

        try:
            return get_contributor_usernames_from_shortlog(
                self.runner, ctx.root, cfg.contributor_map
            )
        except GitError as e:
            logger.warning("Unable to get contributors: %s", e)
            return []

    def global_roster_html(self, ctx: PreprocessorContext, cfg: ResolvedConfig) -> str:
        return self.render_roster(self.collect_contributors(ctx, cfg), cfg)

    def render_roster(self, handles: list[str], cfg: ResolvedConfig) -> str:
        """Filter, split and render a roster; "" on template failure."""
        roster = build_roster(handles, cfg.contributors_exclude, cfg.contributors_max_visible)

        if self._contributors_renderer is None:
            self._contributors_renderer = ContributorsRenderer()

        try:
            return self._contributors_renderer.render(
                roster,
                title=cfg.contributors_title,
                message=cfg.contributors_message,
            )
        except TemplateRenderError as e:
            logger.warning("%s", e)
            return ""

    def contributors_for_token(
        self,
        ids: list[str],
        cfg: ResolvedConfig,
        state: BuildState,
    ) -> str:
        """HTML replacing one ``{% contributors ... %}`` token."""
        if not cfg.contributors_enabled:
            return ""

        if cfg.contributors_source == ContributorSource.INLINE:
            return self.render_roster(ids, cfg)

        if ids:
            logger.warning(
                "Ignoring inline contributors %s: contributors-source is '%s'",
                " ".join(ids),
                cfg.contributors_source.value,
            )
        return state.roster_html or ""

    # -------------------------------------------------------------------------
    # Per-chapter decoration
    # -------------------------------------------------------------------------

    def chapter_git_path(self, ctx: PreprocessorContext, chapter: Chapter) -> str:
        """Path of the chapter source relative to the book root, with forward slashes."""
        full = Path(ctx.book_src) / (chapter.path or "")
        return full.as_posix().replace("\\", "/")

    def render_values(
        self,
        facts: CommitFacts,
        cfg: ResolvedConfig,
        state: BuildState,
    ) -> dict[str, str]:
        """Placeholder values for one chapter."""
        hash_display = facts.short_hash
        branch_display = state.branch

        if cfg.hyperlink_enabled and state.repo_base:
            if facts.long_hash:
                hash_display = anchor(commit_url(state.repo_base, facts.long_hash), facts.short_hash)
            branch_display = anchor(branch_url(state.repo_base, state.branch), state.branch)

        return {
            "hash": hash_display,
            "long": facts.long_hash,
            "tag": tag_display(facts.tag, state.repo_base, cfg.hyperlink_enabled),
            "date": format_commit_datetime(
                facts.raw_timestamp,
                cfg.timezone_mode,
                cfg.date_format,
                cfg.time_format,
            ),
            "sep": cfg.separator,
            "branch": branch_display,
        }

    def decorate_chapter(
        self,
        chapter: Chapter,
        ctx: PreprocessorContext,
        cfg: ResolvedConfig,
        state: BuildState,
    ) -> bool:
        """Decorate one chapter in place.

        Returns:
            True if the chapter has a source file and was given git info
        """
        chapter.content = replace_contributor_tokens(
            chapter.content,
            lambda ids: self.contributors_for_token(ids, cfg, state),
        )

        if chapter.path is None:
            return False

        facts = get_commit_facts(self.runner, state.branch, self.chapter_git_path(ctx, chapter), ctx.root)
        facts.tag = state.tag
        values = self.render_values(facts, cfg, state)

        if cfg.header_enabled:
            style = style_block(cfg.font_size, cfg.align_header, cfg.margin_header)
            html = wrap_block(True, style, render_template(cfg.header_template, values))
            chapter.content = add_header(chapter.content, html)

        if cfg.footer_enabled:
            style = style_block(cfg.font_size, cfg.align_footer, cfg.margin_footer)
            html = wrap_block(False, style, render_template(cfg.footer_template, values))
            chapter.content = add_footer(chapter.content, html)

        return True
