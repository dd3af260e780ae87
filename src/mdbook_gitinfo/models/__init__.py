"""mdbook-gitinfo data models.

- book: mdBook preprocessor protocol (context, book, chapters)
"""

from mdbook_gitinfo.models.book import (
    Book,
    BookItem,
    Chapter,
    PreprocessorContext,
    RawItem,
    for_each_chapter,
    parse_input,
)

__all__ = [
    "Book",
    "BookItem",
    "Chapter",
    "PreprocessorContext",
    "RawItem",
    "for_each_chapter",
    "parse_input",
]
