"""mdBook preprocessor protocol entities.

mdBook sends ``[context, book]`` as JSON on stdin and reads the book back
from stdout. This module contains:
- PreprocessorContext: Book root, config tree and target renderer
- Chapter: One chapter with its Markdown and nested sub-items
- RawItem: Separators and part titles, passed through unchanged
- Book: Top-level item list
"""

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

_CHAPTER_KEYS = ("name", "content", "number", "sub_items", "path", "source_path", "parent_names")


@dataclass
class RawItem:
    """A non-chapter book item (``"Separator"``, ``{"PartTitle": ...}``)."""

    value: Any

    def to_dict(self) -> Any:
        return self.value


@dataclass
class Chapter:
    """A single chapter.

    Attributes:
        name: Chapter title
        content: Markdown body (mutated by the preprocessor)
        number: Section number, e.g. [1, 2]
        path: Source path relative to the book src dir (None for drafts)
        source_path: Original source path
        parent_names: Titles of enclosing chapters
        sub_items: Nested items
        extra: Unknown fields, preserved on output
    """

    name: str
    content: str = ""
    number: list[int] | None = None
    path: str | None = None
    source_path: str | None = None
    parent_names: list[str] = field(default_factory=list)
    sub_items: list["BookItem"] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chapter":
        """Create from the JSON ``Chapter`` object."""
        return cls(
            name=data.get("name", ""),
            content=data.get("content", ""),
            number=data.get("number"),
            path=data.get("path"),
            source_path=data.get("source_path"),
            parent_names=list(data.get("parent_names") or []),
            sub_items=[parse_item(item) for item in data.get("sub_items") or []],
            extra={k: v for k, v in data.items() if k not in _CHAPTER_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the JSON item shape."""
        body: dict[str, Any] = {
            "name": self.name,
            "content": self.content,
            "number": self.number,
            "sub_items": [item.to_dict() for item in self.sub_items],
            "path": self.path,
            "source_path": self.source_path,
            "parent_names": self.parent_names,
        }
        body.update(self.extra)
        return {"Chapter": body}


BookItem = Chapter | RawItem


def parse_item(data: Any) -> BookItem:
    """Parse one book item."""
    if isinstance(data, dict) and isinstance(data.get("Chapter"), dict):
        return Chapter.from_dict(data["Chapter"])
    return RawItem(data)


@dataclass
class Book:
    """The book sent by mdBook.

    mdBook 0.4 names the item list ``sections``; 0.5 names it ``items``.
    The original key is kept so the output matches the input.
    """

    items: list[BookItem] = field(default_factory=list)
    items_key: str = "sections"
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Book":
        key = "items" if "items" in data else "sections"
        return cls(
            items=[parse_item(item) for item in data.get(key) or []],
            items_key=key,
            extra={k: v for k, v in data.items() if k != key},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {self.items_key: [item.to_dict() for item in self.items]}
        result.update(self.extra)
        return result

    def chapters(self) -> list[Chapter]:
        """All chapters in depth-first document order."""
        found: list[Chapter] = []
        for_each_chapter(self, found.append)
        return found


@dataclass
class PreprocessorContext:
    """Context mdBook passes to preprocessors.

    Attributes:
        root: Book root directory (where book.toml lives)
        config: Parsed book.toml
        renderer: Renderer the book is being prepared for
        mdbook_version: Version of the calling mdBook
    """

    root: Path
    config: dict[str, Any] = field(default_factory=dict)
    renderer: str = "html"
    mdbook_version: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PreprocessorContext":
        return cls(
            root=Path(data.get("root") or "."),
            config=data.get("config") or {},
            renderer=data.get("renderer") or "html",
            mdbook_version=data.get("mdbook_version") or "",
        )

    @property
    def book_src(self) -> str:
        """Source directory relative to root (``book.src``)."""
        book = self.config.get("book") or {}
        return book.get("src") or "src"

    def preprocessor_config(self, name: str) -> dict[str, Any] | None:
        """Return the ``[preprocessor.<name>]`` table, if present."""
        preprocessors = self.config.get("preprocessor") or {}
        table = preprocessors.get(name)
        return table if isinstance(table, dict) else None


def _walk(item: BookItem, callback: Callable[[Chapter], None]) -> None:
    if isinstance(item, Chapter):
        callback(item)
        for sub in item.sub_items:
            _walk(sub, callback)


def for_each_chapter(book: Book, callback: Callable[[Chapter], None]) -> None:
    """Visit every chapter depth-first: parents before children, siblings
    in document order."""
    for item in book.items:
        _walk(item, callback)


def parse_input(raw: str) -> tuple[PreprocessorContext, Book]:
    """Parse mdBook's stdin payload.

    Raises:
        ValueError: If the payload isn't a ``[context, book]`` JSON array
    """
    data = json.loads(raw)
    if not isinstance(data, list) or len(data) != 2:
        raise ValueError("Expected a JSON array of [context, book]")
    ctx_data, book_data = data
    if not isinstance(ctx_data, dict) or not isinstance(book_data, dict):
        raise ValueError("Expected context and book objects")
    return PreprocessorContext.from_dict(ctx_data), Book.from_dict(book_data)
