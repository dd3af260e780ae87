"""mdbook-gitinfo utility modules.

- logging: Standardized stderr logging with human/verbose/JSON modes
"""

from mdbook_gitinfo.utils.logging import configure_from_cli, get_logger, setup_logging

__all__ = [
    "configure_from_cli",
    "get_logger",
    "setup_logging",
]
