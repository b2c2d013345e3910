"""
PathSieve Core: Input Validators.

This module provides the error hierarchy shared by every PathSieve layer and
the precondition checks run before any traversal or filesystem side effect:
roots, regex patterns, archive destinations and configuration sections.
"""
import os
import re
from typing import Any, Dict, Iterable, List, Pattern

from pathsieve.core.constants import (
    ARCHIVE_EXTENSION,
    ArchiveCompression,
    CollisionPolicy,
    ConfigKey,
    ErrorCode,
    Limits,
)
from pathsieve.core.path_utils import has_extension, resolve_path

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class PathSieveError(Exception):
    """Base exception for all PathSieve errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        """Initialize PathSieveError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ValidationError(PathSieveError):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        super().__init__(message, error_code)


class RootNotFoundError(ValidationError):
    """Root argument does not resolve to an existing path."""

    def __init__(self, root: str):
        super().__init__(f"Root directory does not exist: {root}", ErrorCode.NOT_FOUND)
        self.root = root


class RootNotDirectoryError(ValidationError):
    """Root argument resolves to something other than a directory."""

    def __init__(self, root: str):
        super().__init__(f"Root is not a directory: {root}", ErrorCode.INVALID_INPUT)
        self.root = root


class InvalidPatternError(ValidationError):
    """Include/exclude string is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern {pattern!r}: {reason}", ErrorCode.INVALID_INPUT)
        self.pattern = pattern


class InvalidDestinationExtensionError(ValidationError):
    """Archive destination does not end in the archive suffix."""

    def __init__(self, destination: str):
        super().__init__(
            f"Archive destination must end in '{ARCHIVE_EXTENSION}': {destination}",
            ErrorCode.INVALID_INPUT,
        )
        self.destination = destination


def validate_root(root: str) -> str:
    """Resolve a root argument and check it is an existing directory.

    Args:
        root: Root directory as supplied by the caller

    Returns:
        Absolute path of the root

    Raises:
        ValidationError: If root is empty or not a string
        RootNotFoundError: If the root does not exist
        RootNotDirectoryError: If the root is not a directory
    """
    if not isinstance(root, (str, os.PathLike)):
        raise ValidationError(f"Root must be a path, got {type(root).__name__}")

    if not str(root):
        raise ValidationError("Root cannot be empty")

    resolved = resolve_path(root)

    if not os.path.exists(resolved):
        raise RootNotFoundError(str(root))

    if not os.path.isdir(resolved):
        raise RootNotDirectoryError(str(root))

    return resolved


def validate_pattern(pattern: str, case_sensitive: bool = False) -> Pattern[str]:
    """Compile an include/exclude regular expression.

    Args:
        pattern: Regular expression source
        case_sensitive: Compile without re.IGNORECASE when True

    Returns:
        Compiled pattern

    Raises:
        InvalidPatternError: If the pattern cannot be compiled
    """
    if not isinstance(pattern, str):
        raise InvalidPatternError(repr(pattern), f"must be string, got {type(pattern).__name__}")

    if len(pattern) > Limits.MAX_PATTERN_LENGTH:
        raise InvalidPatternError(
            pattern[:40] + "...", f"exceeds maximum length ({Limits.MAX_PATTERN_LENGTH})"
        )

    if "\0" in pattern:
        raise InvalidPatternError(pattern, "contains null bytes")

    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise InvalidPatternError(pattern, str(e))


def validate_patterns(patterns: Iterable[str], case_sensitive: bool = False) -> List[Pattern[str]]:
    """Compile every non-empty pattern in order, failing on the first bad one."""
    compiled = []
    for pattern in patterns:
        if pattern == "":
            continue
        compiled.append(validate_pattern(pattern, case_sensitive))
    return compiled


def validate_destination(destination: str) -> str:
    """Check the archive destination suffix.

    Purely syntactic: the filesystem is not touched.

    Args:
        destination: Destination archive path

    Returns:
        The destination unchanged

    Raises:
        InvalidDestinationExtensionError: If the suffix is not .zip
    """
    if not isinstance(destination, (str, os.PathLike)) or not str(destination):
        raise InvalidDestinationExtensionError(str(destination))

    if not has_extension(str(destination), ARCHIVE_EXTENSION):
        raise InvalidDestinationExtensionError(str(destination))

    return str(destination)


def validate_collision_policy(value: Any) -> CollisionPolicy:
    """Convert a config/CLI value into a CollisionPolicy."""
    if isinstance(value, CollisionPolicy):
        return value
    try:
        return CollisionPolicy(str(value).lower())
    except ValueError:
        valid = [p.value for p in CollisionPolicy]
        raise ValidationError(f"Invalid collision policy: {value}. Must be one of {valid}")


def validate_compression(value: Any) -> ArchiveCompression:
    """Convert a config/CLI value into an ArchiveCompression."""
    if isinstance(value, ArchiveCompression):
        return value
    try:
        return ArchiveCompression(str(value).lower())
    except ValueError:
        valid = [c.value for c in ArchiveCompression]
        raise ValidationError(f"Invalid compression: {value}. Must be one of {valid}")


def _require_section(config: Dict[str, Any], key: str) -> Dict[str, Any]:
    section = config.get(key, {})
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValidationError(f"Configuration section '{key}' must be a dictionary")
    return section


def _require_bool(section: Dict[str, Any], section_name: str, key: str) -> None:
    if key in section and not isinstance(section[key], bool):
        raise ValidationError(f"{section_name}.{key} must be boolean: {section[key]}")


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate PathSieve configuration structure.

    Args:
        config: Merged configuration dictionary

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    filters = _require_section(config, ConfigKey.FILTERS)
    _require_bool(filters, ConfigKey.FILTERS, ConfigKey.CASE_SENSITIVE)
    for key in (ConfigKey.INCLUDE, ConfigKey.EXCLUDE):
        patterns = filters.get(key) or []
        if not isinstance(patterns, list):
            raise ValidationError(f"{ConfigKey.FILTERS}.{key} must be a list")
        try:
            validate_patterns(patterns)
        except InvalidPatternError as e:
            raise InvalidPatternError(e.pattern, f"in {ConfigKey.FILTERS}.{key}")

    traversal = _require_section(config, ConfigKey.TRAVERSAL)
    _require_bool(traversal, ConfigKey.TRAVERSAL, ConfigKey.PRUNE_DIRECTORIES)
    _require_bool(traversal, ConfigKey.TRAVERSAL, ConfigKey.FOLLOW_SYMLINKS)

    archive = _require_section(config, ConfigKey.ARCHIVE)
    if ConfigKey.COMPRESSION in archive:
        validate_compression(archive[ConfigKey.COMPRESSION])
    if ConfigKey.ON_COLLISION in archive:
        validate_collision_policy(archive[ConfigKey.ON_COLLISION])

    processors = _require_section(config, ConfigKey.PROCESSORS)
    plugins = processors.get(ConfigKey.PLUGINS) or []
    if not isinstance(plugins, list):
        raise ValidationError(f"{ConfigKey.PROCESSORS}.{ConfigKey.PLUGINS} must be a list")
    for reference in plugins:
        if not isinstance(reference, str) or ":" not in reference:
            raise ValidationError(f"Plugin reference must look like 'module:attr': {reference}")

    logging_section = _require_section(config, ConfigKey.LOGGING)
    level = logging_section.get(ConfigKey.LOG_LEVEL)
    if level is not None and str(level).upper() not in LOG_LEVEL_NAMES:
        raise ValidationError(f"Invalid log level: {level}")

    return True
