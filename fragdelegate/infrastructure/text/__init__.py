"""Text processing: prompt fragmentation."""

from .fragmenter import (
    Fragmenter,
    FragmenterConfig,
    detect_sections,
    fragment_text,
    semantic_fragmentation,
    simple_fragmentation,
)

__all__ = [
    "Fragmenter",
    "FragmenterConfig",
    "detect_sections",
    "fragment_text",
    "semantic_fragmentation",
    "simple_fragmentation",
]
