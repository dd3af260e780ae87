"""Text-level post-processing of chapter Markdown."""

from mdbook_gitinfo.renderers.tokens import match_token, replace_contributor_tokens

__all__ = ["match_token", "replace_contributor_tokens"]
