"""Theme asset installation.

Writes the gitinfo stylesheet to ``<root>/theme/gitinfo.css`` and registers
it under ``output.html.additional-css`` in ``book.toml``. Both writes are
idempotent and failures only produce warnings.
"""

import logging
from collections.abc import MutableMapping
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import Array

from mdbook_gitinfo.defaults import CSS_REL_PATH

logger = logging.getLogger(__name__)


class AssetWriteError(Exception):
    """Raised when a theme file or book.toml can't be updated."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"Unable to update {path}: {message}")


def ensure_css_file(root: Path, css_contents: str) -> bool:
    """Write ``theme/gitinfo.css`` if it is missing or different.

    Returns:
        True if the file was written

    Raises:
        AssetWriteError: If the file can't be read or written
    """
    css_path = root / CSS_REL_PATH
    try:
        if css_path.exists() and css_path.read_text(encoding="utf-8") == css_contents:
            return False
        css_path.parent.mkdir(parents=True, exist_ok=True)
        css_path.write_text(css_contents, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise AssetWriteError(css_path, str(e)) from e

    logger.debug("Wrote %s", css_path)
    return True


def _ensure_table(parent: MutableMapping, key: str, path: Path) -> MutableMapping:
    if key not in parent:
        parent[key] = tomlkit.table()
    table = parent[key]
    if not isinstance(table, MutableMapping):
        raise AssetWriteError(path, f"'{key}' exists but is not a table")
    return table


def add_additional_css(document: tomlkit.TOMLDocument, book_toml: Path) -> bool:
    """Register the stylesheet in ``output.html.additional-css``.

    A bare string value is normalised to an array.

    Returns:
        True if the document changed

    Raises:
        AssetWriteError: If the existing value is neither a string nor an array
    """
    output = _ensure_table(document, "output", book_toml)
    html = _ensure_table(output, "html", book_toml)

    current = html.get("additional-css")
    if current is None:
        entries = tomlkit.array()
        entries.append(CSS_REL_PATH)
        html["additional-css"] = entries
        return True

    if isinstance(current, Array):
        if any(str(v) == CSS_REL_PATH for v in current):
            return False
        current.append(CSS_REL_PATH)
        return True

    if isinstance(current, str):
        existing = str(current)
        entries = tomlkit.array()
        entries.append(existing)
        if existing != CSS_REL_PATH:
            entries.append(CSS_REL_PATH)
        html["additional-css"] = entries
        return True

    raise AssetWriteError(
        book_toml,
        f"output.html.additional-css is not a string or array (found: {type(current).__name__})",
    )


def ensure_book_toml_additional_css(root: Path) -> bool:
    """Add the stylesheet to book.toml, writing only on change.

    Returns:
        True if book.toml was rewritten (False if missing or already set)

    Raises:
        AssetWriteError: If book.toml can't be read, parsed or written
    """
    book_toml = root / "book.toml"
    if not book_toml.exists():
        return False

    try:
        raw = book_toml.read_text(encoding="utf-8")
        document = tomlkit.parse(raw)
    except (OSError, UnicodeDecodeError, TOMLKitError) as e:
        raise AssetWriteError(book_toml, str(e)) from e

    if not add_additional_css(document, book_toml):
        return False

    updated = tomlkit.dumps(document)
    if updated == raw:
        return False

    try:
        book_toml.write_text(updated, encoding="utf-8")
    except OSError as e:
        raise AssetWriteError(book_toml, str(e)) from e

    logger.info("Registered %s in %s", CSS_REL_PATH, book_toml)
    return True


def ensure_gitinfo_assets(root: Path, css_contents: str) -> None:
    """Install the stylesheet and register it, logging failures as warnings."""
    try:
        ensure_css_file(root, css_contents)
    except AssetWriteError as e:
        logger.warning("%s", e)

    try:
        ensure_book_toml_additional_css(root)
    except AssetWriteError as e:
        logger.warning("%s", e)
