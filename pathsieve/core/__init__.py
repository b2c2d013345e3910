"""PathSieve Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from pathsieve.core.config import ConfigManager
    from pathsieve.core import constants
    from pathsieve.core import file_ops
    from pathsieve.core import logging
    from pathsieve.core import path_utils
    from pathsieve.core import validators
"""

# Re-export main module references for convenience
from pathsieve.core import (
    config,
    constants,
    file_ops,
    logging,
    path_utils,
    validators,
)

__all__ = [
    "config",
    "constants",
    "file_ops",
    "logging",
    "path_utils",
    "validators",
]
