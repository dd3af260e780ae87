"""mdbook-gitinfo - git provenance for mdBook chapters.

An mdBook preprocessor that decorates every chapter with the commit that
last touched it (short/long hash, tag, timestamp, branch) and replaces
``{% contributors %}`` tokens with a contributor roster.

Core behaviour:
- Configuration is read once per build and resolved to concrete values
- Git failures never abort a build; they degrade to empty/default values
- Repeated runs over decorated content do not duplicate markup
"""

__version__ = "0.1.0"
__author__ = "mdbook-gitinfo Contributors"
