"""Header/footer and contributor roster rendering.

Header and footer messages use a fixed set of literal ``{{name}}``
placeholders filled in a single pass. Contributor rosters are rendered from
the Jinja2 template ``contributors.html.j2`` shipped with the package.
"""

import logging
import re
from importlib import resources
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from mdbook_gitinfo.contributors import ContributorRoster

logger = logging.getLogger(__name__)

PLACEHOLDERS = ("hash", "long", "tag", "date", "sep", "branch")

_PLACEHOLDER_RE = re.compile(r"\{\{(" + "|".join(PLACEHOLDERS) + r")\}\}")


class TemplateRenderError(Exception):
    """Raised when a packaged template can't be loaded or rendered."""

    def __init__(self, template_name: str, message: str) -> None:
        self.template_name = template_name
        super().__init__(f"Template rendering failed: {template_name} - {message}")


def render_template(template: str, values: dict[str, str]) -> str:
    """Fill ``{{hash}}``, ``{{long}}``, ``{{tag}}``, ``{{date}}``,
    ``{{sep}}`` and ``{{branch}}`` in a message template.

    Substitution is a single pass, so a value that itself contains a
    placeholder is not expanded again. Unknown placeholders are left as-is.

    Args:
        template: User message template
        values: Placeholder name -> replacement text

    Returns:
        Rendered message
    """

    def replace(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER_RE.sub(replace, template)


def style_block(font_size: str, align: str, margin: tuple[str, str, str, str]) -> str:
    """Build the inline CSS for a header/footer block."""
    return (
        f"font-size:{font_size};padding:4px;margin:{' '.join(margin)};"
        f"text-align:{align};display:block;"
    )


def wrap_block(is_header: bool, style: str, html: str) -> str:
    """Wrap rendered message HTML in a header or footer element."""
    if is_header:
        return f'<header class="gitinfo-header" style="{style}">{html}</header>'
    return f'<footer class="gitinfo-footer" style="{style}">{html}</footer>'


def anchor(url: str, text: str) -> str:
    return f'<a href="{url}">{text}</a>'


def load_stylesheet() -> str:
    """Return the packaged ``gitinfo.css`` contents."""
    return (
        resources.files("mdbook_gitinfo.templates")
        .joinpath("gitinfo.css")
        .read_text(encoding="utf-8")
    )


class ContributorsRenderer:
    """Renders contributor rosters to HTML.

    Usage:
        renderer = ContributorsRenderer()
        html = renderer.render(roster, title="Contributors")
    """

    TEMPLATE_NAME = "contributors.html.j2"

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("mdbook_gitinfo", "templates"),
            autoescape=select_autoescape(["html", "xml", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(
        self,
        roster: ContributorRoster,
        title: str,
        message: str | None = None,
    ) -> str:
        """Render a roster.

        The output has no blank lines so Markdown treats it as one HTML block.

        Args:
            roster: Visible/hidden handles
            title: Heading text
            message: Optional text under the heading

        Returns:
            HTML string ("" for an empty roster)

        Raises:
            TemplateRenderError: If the template fails to load or render
        """
        if roster.is_empty():
            return ""

        context: dict[str, Any] = {
            "title": title,
            "message": message,
            "visible": list(roster.visible),
            "hidden": list(roster.hidden),
            "total": roster.total,
        }

        try:
            template = self._env.get_template(self.TEMPLATE_NAME)
            rendered = template.render(**context)
        except TemplateError as e:
            raise TemplateRenderError(self.TEMPLATE_NAME, str(e)) from e

        lines = [line for line in rendered.splitlines() if line.strip()]
        return "\n".join(lines)
