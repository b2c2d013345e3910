"""
PathSieve Core: Constants

This module provides system-wide constants, error codes and enums
shared by the filter engine, the transform dispatcher and the archive builder.
"""
from enum import Enum, IntEnum

# Version information
PATHSIEVE_VERSION = "1.0.0"


# Error codes (double as process exit codes)
class ErrorCode(IntEnum):
    """Standardized error codes for PathSieve operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad pattern, bad extension, bad argument
    NOT_FOUND = 2  # Root or file doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Archive name collision, rename target exists
    DEPENDENCY_ERROR = 5  # Missing external tool (clipboard)
    INTERNAL_ERROR = 6  # I/O failure or bug in PathSieve


# Header passed to processors for every matched file
HEADER_FORMAT = "File: {path}"

# Archive destinations must carry this suffix
ARCHIVE_EXTENSION = ".zip"


class Limits:
    """Input limits and I/O defaults."""

    MAX_PATTERN_LENGTH = 4096

    # Rotating log file
    LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_FILE_BACKUP_COUNT = 5


class CollisionPolicy(Enum):
    """What to do when two archive entries map to the same internal name."""

    ERROR = "error"  # Refuse to build the archive
    SUFFIX = "suffix"  # Rename later duplicates: "x (2).txt"
    LAST = "last"  # Keep only the last entry written under the name


class ArchiveCompression(Enum):
    """Compression methods accepted for the destination archive."""

    STORED = "stored"
    DEFLATED = "deflated"
    BZIP2 = "bzip2"
    LZMA = "lzma"


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    # Top-level sections
    FILTERS = "filters"
    TRAVERSAL = "traversal"
    ARCHIVE = "archive"
    PROCESSORS = "processors"
    LOGGING = "logging"

    # Filter configuration
    CASE_SENSITIVE = "case_sensitive"
    INCLUDE = "include"
    EXCLUDE = "exclude"

    # Traversal configuration
    PRUNE_DIRECTORIES = "prune_directories"
    FOLLOW_SYMLINKS = "follow_symlinks"

    # Archive configuration
    COMPRESSION = "compression"
    ON_COLLISION = "on_collision"

    # Processor configuration
    PLUGINS = "plugins"

    # Logging configuration
    LOG_LEVEL = "level"
    LOG_FILE = "file"


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.FILTERS: {
        ConfigKey.CASE_SENSITIVE: False,
        ConfigKey.INCLUDE: [],
        ConfigKey.EXCLUDE: [],
    },
    ConfigKey.TRAVERSAL: {
        ConfigKey.PRUNE_DIRECTORIES: False,
        ConfigKey.FOLLOW_SYMLINKS: False,
    },
    ConfigKey.ARCHIVE: {
        ConfigKey.COMPRESSION: ArchiveCompression.DEFLATED.value,
        ConfigKey.ON_COLLISION: CollisionPolicy.ERROR.value,
    },
    ConfigKey.PROCESSORS: {
        ConfigKey.PLUGINS: [],
    },
    ConfigKey.LOGGING: {
        ConfigKey.LOG_LEVEL: "INFO",
        ConfigKey.LOG_FILE: None,
    },
}
