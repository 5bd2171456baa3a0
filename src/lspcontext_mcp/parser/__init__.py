"""Parser package for locating definition spans in source code."""

from .languages import (
    LanguageSpec,
    LANGUAGE_REGISTRY,
    LANGUAGE_EXTENSIONS,
    language_for_path,
)
from .definitions import find_enclosing_definition

__all__ = [
    "LanguageSpec",
    "LANGUAGE_REGISTRY",
    "LANGUAGE_EXTENSIONS",
    "language_for_path",
    "find_enclosing_definition",
]
