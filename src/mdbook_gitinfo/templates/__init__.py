"""mdbook-gitinfo rendering.

Literal placeholder substitution for header/footer messages and Jinja2
rendering for contributor rosters. The packaged templates and stylesheet
live next to this module.
"""

from mdbook_gitinfo.templates.renderer import (
    ContributorsRenderer,
    TemplateRenderError,
    load_stylesheet,
    render_template,
    style_block,
    wrap_block,
)

__all__ = [
    "ContributorsRenderer",
    "TemplateRenderError",
    "load_stylesheet",
    "render_template",
    "style_block",
    "wrap_block",
]
