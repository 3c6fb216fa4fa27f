"""Voice inventory indexing.

This package builds the language-keyed voice catalog consumed by sessions.
"""

from .catalog import VoiceCatalog
from .language_names import language_display_name

__all__ = ["VoiceCatalog", "language_display_name"]
