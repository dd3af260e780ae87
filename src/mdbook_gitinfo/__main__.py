"""Entry point for running mdbook-gitinfo as a module.

Usage:
    python -m mdbook_gitinfo [command] [options]

Example:
    python -m mdbook_gitinfo supports html
    python -m mdbook_gitinfo check
"""

from mdbook_gitinfo.cli import app

if __name__ == "__main__":
    app()
