"""mdbook-gitinfo configuration system.

Configuration comes from the ``[preprocessor.gitinfo]`` table of ``book.toml``
(delivered by mdBook inside the preprocessor context), optionally layered over
a YAML file kept next to the book. The YAML layer supports environment
variable substitution (${VAR}).

Layering (lowest to highest precedence):
1. Built-in defaults (applied later by the resolver)
2. YAML file: --config argument, ./.gitinfo/config.yaml or ./gitinfo.yaml
3. ``[preprocessor.gitinfo]`` table in book.toml

Every field is optional. A missing configuration yields defaults; a malformed
one raises ``ConfigInvalidError``.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class ConfigInvalidError(Exception):
    """Raised when the configuration is present but malformed."""

    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        full_message = f"Invalid gitinfo config: {message}"
        if key is not None:
            full_message = f"Invalid gitinfo config '{key}': {message}"
        super().__init__(full_message)


# =============================================================================
# Setting Variants
# =============================================================================


@dataclass(frozen=True)
class AlignOne:
    """A single alignment applied to header and footer."""

    value: str


@dataclass(frozen=True)
class AlignSplit:
    """Per-placement alignment with a shared fallback."""

    header: str | None = None
    footer: str | None = None
    both: str | None = None


AlignSetting = AlignOne | AlignSplit


@dataclass(frozen=True)
class MarginOne:
    """A single margin applied to all four sides."""

    value: str


@dataclass(frozen=True)
class MarginQuad:
    """A 1-4 element margin list using CSS shorthand rules."""

    values: tuple[str, ...]


@dataclass(frozen=True)
class MarginSides:
    """Independent per-side margins; missing sides use a fallback."""

    top: str | None = None
    right: str | None = None
    bottom: str | None = None
    left: str | None = None


MarginSetting = MarginOne | MarginQuad | MarginSides


@dataclass(frozen=True)
class MarginConfig:
    """Margin settings for header, footer and the shared base."""

    header: MarginSetting | None = None
    footer: MarginSetting | None = None
    both: MarginSetting | None = None


@dataclass(frozen=True)
class MessageConfig:
    """Message templates per placement.

    Attributes:
        header: Template used only for the header
        footer: Template used only for the footer
        both: Template shared by header and footer
    """

    header: str | None = None
    footer: str | None = None
    both: str | None = None


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class GitInfoConfig:
    """Raw ``[preprocessor.gitinfo]`` options, exactly as the user wrote them.

    Each field is optional; ``None`` means "not set". Defaults are applied by
    ``mdbook_gitinfo.resolver.resolve_config``.

    Attributes:
        enable: Gate to turn the preprocessor off without removing the table
        header: Render a header block above each chapter
        footer: Render a footer block below each chapter
        template: Legacy single template for header and footer
        message: Per-placement message templates
        font_size: CSS font size for header/footer
        separator: Text substituted for {{sep}}
        date_format: strftime pattern for the date part
        time_format: strftime pattern for the time part
        timezone: local, utc, source or fixed:+HH:MM
        branch: Branch the commit lookups are scoped to
        align: Text alignment (scalar or split table)
        margin: Margins (scalar, shorthand list or per-side table)
        hyperlink: Link hash, branch and tag to the hosting provider
        tag: Tag to display instead of the detected one
        contributors: Render contributor rosters for {% contributors %}
        contributors_source: git, file or inline
        contributors_file: Contributor list file (relative to book root)
        contributor_title: Heading above the roster
        contributor_message: Text under the roster heading
        exclude_contributors: Handles never shown
        contributors_max_visible: Handles shown before the "more" fold
        contributor_map: Git author name or email -> handle overrides
        css: Install theme/gitinfo.css and register it in book.toml
    """

    enable: bool | None = None
    header: bool | None = None
    footer: bool | None = None
    template: str | None = None
    message: MessageConfig | None = None
    font_size: str | None = None
    separator: str | None = None
    date_format: str | None = None
    time_format: str | None = None
    timezone: str | None = None
    branch: str | None = None
    align: AlignSetting | None = None
    margin: MarginConfig | None = None
    hyperlink: bool | None = None
    tag: str | None = None
    contributors: bool | None = None
    contributors_source: str | None = None
    contributors_file: str | None = None
    contributor_title: str | None = None
    contributor_message: str | None = None
    exclude_contributors: list[str] | None = None
    contributors_max_visible: int | None = None
    contributor_map: dict[str, str] = field(default_factory=dict)
    css: bool | None = None

    # Set by load_config when a YAML layer was used
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the YAML config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${GITINFO_BRANCH} -> value of GITINFO_BRANCH

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find a YAML configuration file in standard locations.

    Search order:
    1. ./.gitinfo/config.yaml
    2. ./gitinfo.yaml

    Args:
        start_path: Book root to search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".gitinfo" / "config.yaml",
        start_path / "gitinfo.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Typed Field Readers
# =============================================================================


def _scalar_str(value: Any, key: str) -> str:
    # TOML/YAML numbers are accepted for CSS values such as `margin = 0`
    if isinstance(value, bool):
        raise ConfigInvalidError(f"expected a string, got {value!r}", key)
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigInvalidError(f"expected a string, got {type(value).__name__}", key)


def _get_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigInvalidError(f"expected a string, got {type(value).__name__}", key)
    return value


def _get_bool(data: dict[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigInvalidError(f"expected true or false, got {value!r}", key)
    return value


def _get_int(data: dict[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigInvalidError(f"expected a non-negative integer, got {value!r}", key)
    return value


def _get_str_list(data: dict[str, Any], key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigInvalidError("expected a list of strings", key)
    return list(value)


def _get_table(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigInvalidError(f"expected a table, got {type(value).__name__}", key)
    return value


def parse_message(data: dict[str, Any] | None) -> MessageConfig | None:
    """Parse the ``message`` table."""
    if data is None:
        return None
    return MessageConfig(
        header=_get_str(data, "header"),
        footer=_get_str(data, "footer"),
        both=_get_str(data, "both"),
    )


def parse_align(value: Any) -> AlignSetting | None:
    """Parse ``align`` as a scalar or a header/footer/both table."""
    if value is None:
        return None
    if isinstance(value, str):
        return AlignOne(value)
    if isinstance(value, dict):
        return AlignSplit(
            header=_get_str(value, "header"),
            footer=_get_str(value, "footer"),
            both=_get_str(value, "both"),
        )
    raise ConfigInvalidError("expected a string or a table", "align")


_SIDE_KEYS = ("top", "right", "bottom", "left")
_PLACEMENT_KEYS = ("header", "footer", "both")


def parse_margin_setting(value: Any, key: str) -> MarginSetting | None:
    """Parse one margin setting (scalar, shorthand list or per-side table).

    Args:
        value: Raw value from the config table
        key: Dotted key used in error messages

    Returns:
        Parsed setting, or None if unset

    Raises:
        ConfigInvalidError: If the value has an unsupported shape
    """
    if value is None:
        return None
    if isinstance(value, list):
        if len(value) > 4:
            raise ConfigInvalidError("expected at most 4 values", key)
        return MarginQuad(tuple(_scalar_str(v, key) for v in value))
    if isinstance(value, dict):
        unknown = set(value) - set(_SIDE_KEYS)
        if unknown:
            raise ConfigInvalidError(f"unknown sides {sorted(unknown)}", key)
        sides = {
            side: _scalar_str(value[side], f"{key}.{side}") if value.get(side) is not None else None
            for side in _SIDE_KEYS
        }
        return MarginSides(**sides)
    return MarginOne(_scalar_str(value, key))


def parse_margin(value: Any) -> MarginConfig | None:
    """Parse ``margin``.

    The usual form is a table with ``header``/``footer``/``both``. Any other
    shape is read as the ``both`` setting.
    """
    if value is None:
        return None
    if isinstance(value, dict) and value and set(value) <= set(_PLACEMENT_KEYS):
        return MarginConfig(
            header=parse_margin_setting(value.get("header"), "margin.header"),
            footer=parse_margin_setting(value.get("footer"), "margin.footer"),
            both=parse_margin_setting(value.get("both"), "margin.both"),
        )
    return MarginConfig(both=parse_margin_setting(value, "margin"))


def _parse_contributor_map(data: dict[str, Any]) -> dict[str, str]:
    table = _get_table(data, "contributor-map")
    if table is None:
        return {}
    mapping: dict[str, str] = {}
    for identity, handle in table.items():
        if not isinstance(handle, str):
            raise ConfigInvalidError("handles must be strings", f"contributor-map.{identity}")
        mapping[str(identity)] = handle
    return mapping


# =============================================================================
# Config Loading
# =============================================================================


def merge_tables(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two config tables; ``override`` wins on conflicts."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_tables(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config_from_dict(data: dict[str, Any]) -> GitInfoConfig:
    """Load configuration from a dictionary.

    Args:
        data: The ``[preprocessor.gitinfo]`` table (kebab-case keys)

    Returns:
        GitInfoConfig instance

    Raises:
        ConfigInvalidError: If a value has the wrong type
    """
    if not isinstance(data, dict):
        raise ConfigInvalidError(f"expected a table, got {type(data).__name__}")

    return GitInfoConfig(
        enable=_get_bool(data, "enable"),
        header=_get_bool(data, "header"),
        footer=_get_bool(data, "footer"),
        template=_get_str(data, "template"),
        message=parse_message(_get_table(data, "message")),
        font_size=_get_str(data, "font-size"),
        separator=_get_str(data, "separator"),
        date_format=_get_str(data, "date-format"),
        time_format=_get_str(data, "time-format"),
        timezone=_get_str(data, "timezone"),
        branch=_get_str(data, "branch"),
        align=parse_align(data.get("align")),
        margin=parse_margin(data.get("margin")),
        hyperlink=_get_bool(data, "hyperlink"),
        tag=_get_str(data, "tag"),
        contributors=_get_bool(data, "contributors"),
        contributors_source=_get_str(data, "contributors-source"),
        contributors_file=_get_str(data, "contributors-file"),
        contributor_title=_get_str(data, "contributor-title"),
        contributor_message=_get_str(data, "contributor-message"),
        exclude_contributors=_get_str_list(data, "exclude-contributors"),
        contributors_max_visible=_get_int(data, "contributors-max-visible"),
        contributor_map=_parse_contributor_map(data),
        css=_get_bool(data, "css"),
    )


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file and substitute environment variables.

    Raises:
        ConfigInvalidError: If the file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigInvalidError(f"cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigInvalidError(f"{path} must contain a mapping")

    try:
        return substitute_env_vars(data)
    except ValueError as e:
        raise ConfigInvalidError(str(e)) from e


def load_config(
    table: dict[str, Any] | None = None,
    root: Path | None = None,
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> GitInfoConfig:
    """Load configuration from the book table and an optional YAML file.

    Args:
        table: ``[preprocessor.gitinfo]`` table from book.toml (may be None)
        root: Book root used for YAML discovery
        config_path: Explicit YAML file path
        auto_discover: Whether to search for a YAML file if not specified

    Returns:
        GitInfoConfig instance

    Raises:
        ConfigInvalidError: If config_path doesn't exist or any layer is malformed
    """
    if config_path is not None:
        if not config_path.exists():
            raise ConfigInvalidError(f"config file not found: {config_path}")
        found_path: Path | None = config_path
    elif auto_discover:
        found_path = find_config_file(root)
    else:
        found_path = None

    data: dict[str, Any] = {}
    if found_path is not None:
        data = read_config_file(found_path)

    if table is not None:
        if not isinstance(table, dict):
            raise ConfigInvalidError("[preprocessor.gitinfo] must be a table")
        data = merge_tables(data, table)

    config = load_config_from_dict(data)
    config._config_path = found_path
    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# mdbook-gitinfo configuration
# Values here are overridden by [preprocessor.gitinfo] in book.toml.

# Placement
header: false
footer: true

# Message templates: {{hash}} {{long}} {{tag}} {{date}} {{sep}} {{branch}}
message:
  both: "{{date}}{{sep}}commit: {{hash}}"
  # header: "Last change on {{branch}}"
  # footer: "{{date}}{{sep}}{{tag}}"

# Formatting
font-size: "0.8em"
separator: " • "
date-format: "%Y-%m-%d"
time-format: "%H:%M:%S"
timezone: "local"        # local, utc, source, fixed:+05:30

# Layout (CSS shorthand lists are accepted for margins)
align: "center"
# margin:
#   both: ["0", "0", "2em"]

# Git
branch: "main"
hyperlink: false
# tag: "${RELEASE_TAG}"

# Contributors ({% contributors %} tokens)
contributors: false
contributors-source: "git"   # git, file, inline
# contributors-file: "CONTRIBUTORS.md"
# contributor-title: "Contributors"
# exclude-contributors: ["dependabot"]
# contributors-max-visible: 24
# contributor-map:
#   "Jane Doe": "janedoe"
'''
