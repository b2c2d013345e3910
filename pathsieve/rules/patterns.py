#!/usr/bin/env python3
r"""Include/exclude regex matching for root-relative file paths.

This module provides pattern matching functionality for PathSieve:
- Regex patterns compiled once, up front, failing fast on bad syntax
- Path separator normalization for consistent matching
- Case-insensitive matching by default
- Multiple pattern support with OR logic
- Include/exclude selection where exclude always wins

Example:
    >>> patterns = PatternSet(include=[r"\.txt$"], exclude=[r"^build/"])
    >>> patterns.is_selected("docs/readme.txt")
    True
    >>> patterns.is_selected("build/readme.txt")
    False
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from pathsieve.core.path_utils import normalize_separators
from pathsieve.core.validators import validate_pattern


@dataclass
class PatternEntry:
    """A single compiled pattern with metadata."""

    pattern: str
    compiled: Pattern[str]
    case_sensitive: bool = False
    name: Optional[str] = None


class PatternMatcher:
    """Ordered list of compiled regular expressions.

    Features:
    - Case-sensitive/insensitive matching
    - Path separator normalization
    - Patterns compiled when added
    - OR logic (matches any pattern)
    """

    def __init__(self, case_sensitive: bool = False):
        """Initialize pattern matcher.

        Args:
            case_sensitive: Whether patterns are case-sensitive
        """
        self._patterns: List[PatternEntry] = []
        self._case_sensitive = case_sensitive

    def add_pattern(
        self, pattern: str, name: Optional[str] = None, case_sensitive: Optional[bool] = None
    ) -> None:
        """Compile and add a regex pattern.

        Empty patterns are ignored; whitespace is a literal regex.

        Args:
            pattern: Regular expression, searched anywhere in the path
            name: Optional name for this pattern
            case_sensitive: Override default case sensitivity

        Raises:
            InvalidPatternError: If the pattern does not compile
        """
        if pattern == "":
            return

        is_case_sensitive = case_sensitive if case_sensitive is not None else self._case_sensitive
        compiled = validate_pattern(pattern, is_case_sensitive)

        self._patterns.append(
            PatternEntry(
                pattern=pattern,
                compiled=compiled,
                case_sensitive=is_case_sensitive,
                name=name,
            )
        )

    def matches(self, path: str) -> bool:
        """Check if path matches any pattern.

        Args:
            path: Relative file path to check

        Returns:
            True if path matches any pattern; False when there are none
        """
        normalized = normalize_separators(path)
        return any(entry.compiled.search(normalized) for entry in self._patterns)

    def get_matching_patterns(self, path: str) -> List[str]:
        """Get the names (or sources) of all patterns matching the path."""
        normalized = normalize_separators(path)
        return [
            entry.name or entry.pattern
            for entry in self._patterns
            if entry.compiled.search(normalized)
        ]

    def get_patterns(self) -> List[PatternEntry]:
        """Get all registered patterns."""
        return self._patterns.copy()

    def __len__(self) -> int:
        return len(self._patterns)

    def __bool__(self) -> bool:
        return bool(self._patterns)


def compile_patterns(patterns: Iterable[str], case_sensitive: bool = False) -> PatternMatcher:
    """Build a PatternMatcher from pattern strings, in order.

    Raises:
        InvalidPatternError: On the first pattern that does not compile
    """
    matcher = PatternMatcher(case_sensitive=case_sensitive)
    for pattern in patterns or ():
        matcher.add_pattern(pattern)
    return matcher


def is_selected(relative_path: str, include: PatternMatcher, exclude: PatternMatcher) -> bool:
    """Decide whether a relative path passes include/exclude selection.

    Logic:
    1. No include patterns → included; otherwise must match one
    2. Not included → False, exclude is not consulted
    3. Matches any exclude pattern → False
    4. Otherwise → True

    Args:
        relative_path: Root-relative path ('/' or '\\' separated)
        include: Include patterns
        exclude: Exclude patterns

    Returns:
        True if the path is selected
    """
    included = not include or include.matches(relative_path)
    if not included:
        return False

    return not exclude.matches(relative_path)


class PatternSet:
    """Include and exclude patterns compiled for one traversal.

    An empty include list means "match everything". Exclude is evaluated
    only for paths that passed include, and any exclude match removes the
    path regardless of pattern order or specificity.
    """

    def __init__(
        self,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        case_sensitive: bool = False,
    ):
        """Compile include and exclude patterns.

        Args:
            include: Include regexes (empty or None selects everything)
            exclude: Exclude regexes
            case_sensitive: Compile without re.IGNORECASE when True

        Raises:
            InvalidPatternError: If any pattern does not compile
        """
        self._include = compile_patterns(include or (), case_sensitive)
        self._exclude = compile_patterns(exclude or (), case_sensitive)
        self._case_sensitive = case_sensitive

    @property
    def include(self) -> PatternMatcher:
        return self._include

    @property
    def exclude(self) -> PatternMatcher:
        return self._exclude

    @property
    def case_sensitive(self) -> bool:
        return self._case_sensitive

    def is_selected(self, relative_path: str) -> bool:
        """Check if a root-relative path should be selected."""
        return is_selected(relative_path, self._include, self._exclude)

    def is_excluded(self, relative_path: str) -> bool:
        """Check the exclude patterns alone (used for directory pruning)."""
        return self._exclude.matches(relative_path)
