"""Built-in defaults for every configurable value.

Only the config resolver reads these; every other component works from
``ResolvedConfig`` and never applies a fallback of its own.
"""

PREPROCESSOR_NAME = "gitinfo"

DEFAULT_TEMPLATE = "{{date}}{{sep}}commit: {{hash}}"
DEFAULT_FONT_SIZE = "0.8em"
DEFAULT_SEPARATOR = " • "
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIME_FORMAT = "%H:%M:%S"
DEFAULT_TIMEZONE = "local"
DEFAULT_BRANCH = "main"
DEFAULT_ALIGN = "center"

# top, right, bottom, left
ZERO_MARGIN: tuple[str, str, str, str] = ("0", "0", "0", "0")
DEFAULT_MARGIN: tuple[str, str, str, str] = ("0", "0", "2em", "0")

DEFAULT_HEADER_ENABLED = False
DEFAULT_FOOTER_ENABLED = True
DEFAULT_HYPERLINK = False

DEFAULT_CONTRIBUTORS_ENABLED = False
DEFAULT_CONTRIBUTORS_SOURCE = "git"
DEFAULT_CONTRIBUTORS_FILE = "CONTRIBUTORS.md"
DEFAULT_CONTRIBUTOR_TITLE = "Contributors"
DEFAULT_MAX_VISIBLE_CONTRIBUTORS = 24

NO_TAGS_SENTINEL = "No tags found"
UNKNOWN_TIMESTAMP = "unknown"
UNRESOLVED_TAG_DISPLAY = "-"

CSS_REL_PATH = "theme/gitinfo.css"
