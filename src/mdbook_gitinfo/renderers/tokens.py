"""Contributor token replacement in chapter Markdown.

Finds ``{% contributors %}`` / ``{% contributors id1 id2 %}`` tokens and
swaps them for roster HTML. A token only counts when it is the whole
(trimmed) line. Lines inside fenced code blocks (``` or ~~~) and indented
code (four spaces or a tab) are passed through untouched.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

TOKEN_RE = re.compile(r"^\{%\s*contributors(?:\s+(?P<args>.*?))?\s*%\}$")

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})")

_TRIM_CHARS = " \t\r\n"


@dataclass(frozen=True)
class FenceState:
    """Open fence: its character and run length."""

    char: str
    length: int


def match_token(line: str) -> list[str] | None:
    """Return the token's inline ids, or None if the line isn't a token.

    Examples:
        >>> match_token("{% contributors %}")
        []
        >>> match_token("{% contributors alice bob %}")
        ['alice', 'bob']
    """
    match = TOKEN_RE.match(line.strip(_TRIM_CHARS))
    if not match:
        return None
    args = match.group("args")
    return args.split() if args else []


def _open_fence(stripped: str) -> FenceState | None:
    match = _FENCE_RE.match(stripped)
    if not match:
        return None
    run = match.group(1)
    return FenceState(run[0], len(run))


def _closes_fence(stripped: str, fence: FenceState) -> bool:
    match = _FENCE_RE.match(stripped)
    if not match:
        return False
    run = match.group(1)
    # Closing fences carry no info string
    return run[0] == fence.char and len(run) >= fence.length and not stripped[len(run):].strip()


def _is_indented_code(line: str) -> bool:
    return line.startswith("    ") or line.startswith("\t")


def _split_ending(line: str) -> tuple[str, str]:
    body = line.rstrip("\r")
    return body, line[len(body):]


def replace_contributor_tokens(
    content: str,
    resolve: Callable[[list[str]], str],
) -> str:
    """Replace every contributor token outside code with roster HTML.

    Args:
        content: Chapter Markdown
        resolve: Called with the token's inline ids; returns replacement HTML

    Returns:
        Content with tokens replaced; everything else byte-for-byte unchanged
    """
    if "contributors" not in content:
        return content

    out: list[str] = []
    fence: FenceState | None = None

    # Only "\n" ends a Markdown line; other Unicode separators stay in the text
    for line in content.split("\n"):
        body, ending = _split_ending(line)
        stripped = body.strip()

        if fence is not None:
            if _closes_fence(stripped, fence):
                fence = None
            out.append(line)
            continue

        opened = _open_fence(stripped)
        if opened is not None and not _is_indented_code(body):
            fence = opened
            out.append(line)
            continue

        if _is_indented_code(body):
            out.append(line)
            continue

        ids = match_token(body)
        if ids is None:
            out.append(line)
            continue

        out.append(resolve(ids) + ending)

    return "\n".join(out)
