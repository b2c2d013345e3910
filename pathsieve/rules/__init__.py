"""Include/exclude pattern rules."""

from pathsieve.rules.patterns import (
    PatternEntry,
    PatternMatcher,
    PatternSet,
    compile_patterns,
    is_selected,
)

__all__ = [
    "PatternEntry",
    "PatternMatcher",
    "PatternSet",
    "compile_patterns",
    "is_selected",
]
