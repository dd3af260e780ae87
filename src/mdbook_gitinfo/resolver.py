"""Config resolution: raw, partial settings to concrete values.

Message templates, alignment and margins each have their own fallback chain.
After ``resolve_config`` runs, no component sees an optional or shorthand
form again.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from mdbook_gitinfo import defaults
from mdbook_gitinfo.config import (
    AlignOne,
    AlignSetting,
    AlignSplit,
    GitInfoConfig,
    MarginConfig,
    MarginOne,
    MarginQuad,
    MarginSetting,
    MarginSides,
)
from mdbook_gitinfo.timefmt import TzMode, parse_timezone

logger = logging.getLogger(__name__)

Margin = tuple[str, str, str, str]


class ContributorSource(Enum):
    """Where contributor handles come from."""

    GIT = "git"
    FILE = "file"
    INLINE = "inline"


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully-resolved configuration for one build run.

    Built once by ``resolve_config`` and shared read-only by every component.
    """

    enabled: bool
    header_enabled: bool
    footer_enabled: bool
    header_template: str
    footer_template: str
    font_size: str
    separator: str
    date_format: str
    time_format: str
    timezone_mode: TzMode
    branch: str
    align_header: str
    align_footer: str
    margin_header: Margin
    margin_footer: Margin
    hyperlink_enabled: bool
    tag_override: str | None
    contributors_enabled: bool
    contributors_source: ContributorSource
    contributors_file: str
    contributors_title: str
    contributors_message: str | None
    contributors_exclude: frozenset[str]
    contributors_max_visible: int
    contributor_map: dict[str, str] = field(default_factory=dict)
    css_enabled: bool = False


def resolve_messages(cfg: GitInfoConfig) -> tuple[str, str]:
    """Resolve header and footer templates.

    Each placement independently falls back:
    explicit message -> ``message.both`` -> legacy ``template`` -> default.
    """
    message = cfg.message
    both = message.both if message else None

    def pick(explicit: str | None) -> str:
        for candidate in (explicit, both, cfg.template):
            if candidate is not None:
                return candidate
        return defaults.DEFAULT_TEMPLATE

    header = pick(message.header if message else None)
    footer = pick(message.footer if message else None)
    return header, footer


def resolve_align(setting: AlignSetting | None) -> tuple[str, str]:
    """Resolve header and footer alignment."""
    if isinstance(setting, AlignOne):
        return setting.value, setting.value

    if isinstance(setting, AlignSplit):
        shared = setting.both if setting.both is not None else defaults.DEFAULT_ALIGN
        return (
            setting.header if setting.header is not None else shared,
            setting.footer if setting.footer is not None else shared,
        )

    return defaults.DEFAULT_ALIGN, defaults.DEFAULT_ALIGN


def margin_from_setting(setting: MarginSetting, fallback: Margin) -> Margin:
    """Expand one margin setting to (top, right, bottom, left).

    Lists follow CSS shorthand: 1 -> all sides, 2 -> vertical/horizontal,
    3 -> top/horizontal/bottom, 4 -> explicit. An empty list or a missing
    side takes the value from ``fallback``.

    Args:
        setting: Parsed margin setting
        fallback: Values for anything the setting leaves out

    Returns:
        Concrete four-sided margin
    """
    if isinstance(setting, MarginOne):
        v = setting.value
        return v, v, v, v

    if isinstance(setting, MarginQuad):
        values = setting.values
        if len(values) == 0:
            return fallback
        if len(values) == 1:
            v = values[0]
            return v, v, v, v
        if len(values) == 2:
            vertical, horizontal = values
            return vertical, horizontal, vertical, horizontal
        if len(values) == 3:
            top, horizontal, bottom = values
            return top, horizontal, bottom, horizontal
        return values[0], values[1], values[2], values[3]

    if isinstance(setting, MarginSides):
        sides = (setting.top, setting.right, setting.bottom, setting.left)
        top, right, bottom, left = (
            value if value is not None else default
            for value, default in zip(sides, fallback)
        )
        return top, right, bottom, left

    raise TypeError(f"Unsupported margin setting: {setting!r}")


def resolve_margins(margin: MarginConfig | None) -> tuple[Margin, Margin]:
    """Resolve header and footer margins.

    ``both`` is computed first against an all-zero fallback and becomes the
    fallback for per-placement settings. A placement with no setting of its
    own uses the ``both`` margin when present, else the 2em-bottom default.
    """
    both = margin.both if margin else None
    base = margin_from_setting(both, defaults.ZERO_MARGIN) if both is not None else None

    def pick(own: MarginSetting | None) -> Margin:
        if own is not None:
            return margin_from_setting(own, base or defaults.ZERO_MARGIN)
        if base is not None:
            return base
        return defaults.DEFAULT_MARGIN

    header = pick(margin.header if margin else None)
    footer = pick(margin.footer if margin else None)
    return header, footer


def resolve_contributor_source(value: str | None) -> ContributorSource:
    """Parse ``contributors-source``; unknown values fall back to git."""
    raw = (value or defaults.DEFAULT_CONTRIBUTORS_SOURCE).strip().lower()
    try:
        return ContributorSource(raw)
    except ValueError:
        logger.warning("Unrecognised contributors-source '%s', using 'git'", raw)
        return ContributorSource.GIT


def _non_blank(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def resolve_config(cfg: GitInfoConfig) -> ResolvedConfig:
    """Resolve a raw config into concrete values for one run.

    Args:
        cfg: Raw configuration as loaded from book.toml / YAML

    Returns:
        ResolvedConfig with every field populated
    """
    header_template, footer_template = resolve_messages(cfg)
    align_header, align_footer = resolve_align(cfg.align)
    margin_header, margin_footer = resolve_margins(cfg.margin)

    contributors_enabled = (
        cfg.contributors if cfg.contributors is not None else defaults.DEFAULT_CONTRIBUTORS_ENABLED
    )
    max_visible = cfg.contributors_max_visible
    if max_visible is None:
        max_visible = defaults.DEFAULT_MAX_VISIBLE_CONTRIBUTORS

    return ResolvedConfig(
        enabled=cfg.enable if cfg.enable is not None else True,
        header_enabled=cfg.header if cfg.header is not None else defaults.DEFAULT_HEADER_ENABLED,
        footer_enabled=cfg.footer if cfg.footer is not None else defaults.DEFAULT_FOOTER_ENABLED,
        header_template=header_template,
        footer_template=footer_template,
        font_size=cfg.font_size or defaults.DEFAULT_FONT_SIZE,
        separator=cfg.separator if cfg.separator is not None else defaults.DEFAULT_SEPARATOR,
        date_format=cfg.date_format if cfg.date_format is not None else defaults.DEFAULT_DATE_FORMAT,
        time_format=cfg.time_format if cfg.time_format is not None else defaults.DEFAULT_TIME_FORMAT,
        timezone_mode=parse_timezone(cfg.timezone),
        branch=_non_blank(cfg.branch) or defaults.DEFAULT_BRANCH,
        align_header=align_header,
        align_footer=align_footer,
        margin_header=margin_header,
        margin_footer=margin_footer,
        hyperlink_enabled=cfg.hyperlink if cfg.hyperlink is not None else defaults.DEFAULT_HYPERLINK,
        tag_override=_non_blank(cfg.tag),
        contributors_enabled=contributors_enabled,
        contributors_source=resolve_contributor_source(cfg.contributors_source),
        contributors_file=cfg.contributors_file or defaults.DEFAULT_CONTRIBUTORS_FILE,
        contributors_title=_non_blank(cfg.contributor_title) or defaults.DEFAULT_CONTRIBUTOR_TITLE,
        contributors_message=_non_blank(cfg.contributor_message),
        contributors_exclude=frozenset(cfg.exclude_contributors or ()),
        contributors_max_visible=max_visible,
        contributor_map=dict(cfg.contributor_map),
        css_enabled=cfg.css if cfg.css is not None else contributors_enabled,
    )
