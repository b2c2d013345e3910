"""PathSieve - regex-filtered file enumeration, transforms and zip archives."""

from pathsieve.core.constants import PATHSIEVE_VERSION

__version__ = PATHSIEVE_VERSION
