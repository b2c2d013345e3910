#!/usr/bin/env python3
"""Command-line interface for PathSieve.

This module provides the CLI for filtering, transforming and archiving files:
- Argument parsing and validation
- Configuration file loading
- Logging setup
- Help and version information

Example:
    >>> from pathsieve.cli import parse_arguments
    >>> args = parse_arguments(["filter-files", "-r", "/data", "-i", r"\\.py$"])
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from pathsieve.core.config import ConfigManager, ConfigSource
from pathsieve.core.constants import PATHSIEVE_VERSION, ArchiveCompression, CollisionPolicy
from pathsieve.core.logging import Logger, configure_logging
from pathsieve.core.validators import PathSieveError

# Version information
VERSION = PATHSIEVE_VERSION
DESCRIPTION = "PathSieve - regex-filtered file enumeration, transforms and archives"

COMMANDS = ("filter-files", "transform", "compress")


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    """Root and pattern options shared by every command."""
    parser.add_argument(
        "-r",
        "--root",
        metavar="DIR",
        dest="roots",
        action="append",
        required=True,
        help="Root directory to search (can be specified multiple times)",
    )

    filter_group = parser.add_argument_group("filter options")

    filter_group.add_argument(
        "-i",
        "--include",
        metavar="REGEX",
        action="append",
        help="Select only paths matching REGEX (can be specified multiple times)",
    )

    filter_group.add_argument(
        "-e",
        "--exclude",
        metavar="REGEX",
        action="append",
        help="Drop paths matching REGEX; wins over --include",
    )

    filter_group.add_argument(
        "--case-sensitive",
        action="store_true",
        default=None,
        help="Match patterns case-sensitively (default: case-insensitive)",
    )

    filter_group.add_argument(
        "--prune",
        action="store_true",
        default=None,
        help="Do not descend into directories matching an exclude pattern",
    )

    filter_group.add_argument(
        "--follow-symlinks",
        action="store_true",
        default=None,
        help="Descend into symlinked directories",
    )

    filter_group.add_argument(
        "--skip-invalid-roots",
        action="store_true",
        help="Log and skip missing roots instead of failing",
    )


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
        CLIError: If the arguments are inconsistent
    """
    parser = argparse.ArgumentParser(
        prog="pathsieve",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List Python files, skipping virtualenvs
  pathsieve filter-files -r ~/src -i '\\.py$' -e '(^|/)\\.venv/'

  # Print every Markdown file with a File: header
  pathsieve transform -r docs -i '\\.md$' -a display

  # Preview a rename without touching anything
  pathsieve transform -r photos -i '\\.jpe?g$' -a rename \\
      --template '{{ parent }}_{{ "%03d" | format(index) }}{{ suffix | lower }}' --dry-run

  # Archive two projects into one zip
  pathsieve compress -r app -r lib -e '__pycache__' -d build/src.zip
        """,
    )

    # Version
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )

    # Configuration file
    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Logging options
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to FILE (rotated)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # filter-files
    filter_parser = subparsers.add_parser(
        "filter-files", help="Print the absolute path of every matched file"
    )
    _add_filter_arguments(filter_parser)

    # transform
    transform_parser = subparsers.add_parser(
        "transform", help="Run a processor over every matched file"
    )
    _add_filter_arguments(transform_parser)

    action_group = transform_parser.add_argument_group("action options")

    action_group.add_argument(
        "-a",
        "--action",
        metavar="NAME",
        required=True,
        help="Processor to run (display, clipboard, rename or a configured plugin)",
    )

    action_group.add_argument(
        "--template",
        metavar="TPL",
        help="Jinja2 name template for the rename action",
    )

    action_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what a file-changing action would do without doing it",
    )

    action_group.add_argument(
        "--confirm",
        action="store_true",
        help="Ask before each file-changing call",
    )

    # compress
    compress_parser = subparsers.add_parser(
        "compress", help="Pack every matched file into one zip archive"
    )
    _add_filter_arguments(compress_parser)

    archive_group = compress_parser.add_argument_group("archive options")

    archive_group.add_argument(
        "-d",
        "--destination",
        metavar="FILE",
        required=True,
        help="Archive to create; must end in .zip and is replaced if present",
    )

    archive_group.add_argument(
        "--on-collision",
        choices=[policy.value for policy in CollisionPolicy],
        help="What to do when two files map to the same entry name (default: error)",
    )

    archive_group.add_argument(
        "--compression",
        choices=[method.value for method in ArchiveCompression],
        help="Zip compression method (default: deflated)",
    )

    # Parse arguments
    parsed = parser.parse_args(args)

    # Validate arguments
    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Roots, patterns and the archive destination are checked by the command
    itself so that they fail with their own error codes.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    if not args.command:
        raise CLIError(
            f"A command is required: {', '.join(COMMANDS)}\n" "Use --help for usage information"
        )

    if args.command == "transform":
        if args.dry_run and args.confirm:
            raise CLIError("--dry-run and --confirm cannot be used together")

        if args.template is not None and args.action != "rename":
            raise CLIError(f"--template only applies to the rename action, not {args.action}")


def build_config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build configuration dictionary from command-line arguments.

    Only options given on the command line appear, so that they override
    the configuration file without masking it.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration dictionary for ConfigManager
    """
    config: Dict[str, Any] = {}

    filters = {}
    if getattr(args, "case_sensitive", None):
        filters["case_sensitive"] = True
    if getattr(args, "include", None):
        filters["include"] = list(args.include)
    if getattr(args, "exclude", None):
        filters["exclude"] = list(args.exclude)
    if filters:
        config["filters"] = filters

    traversal = {}
    if getattr(args, "prune", None):
        traversal["prune_directories"] = True
    if getattr(args, "follow_symlinks", None):
        traversal["follow_symlinks"] = True
    if traversal:
        config["traversal"] = traversal

    archive = {}
    if getattr(args, "on_collision", None):
        archive["on_collision"] = args.on_collision
    if getattr(args, "compression", None):
        archive["compression"] = args.compression
    if archive:
        config["archive"] = archive

    # Add logging configuration
    logging_config = {}
    if args.debug:
        logging_config["level"] = "DEBUG"
    if args.log_file:
        logging_config["file"] = args.log_file
    if logging_config:
        config["logging"] = logging_config

    return config


def load_configuration(args: argparse.Namespace) -> ConfigManager:
    """
    Build the layered configuration for this run.

    Args:
        args: Parsed arguments namespace

    Returns:
        ConfigManager holding defaults, file, environment and CLI values

    Raises:
        ConfigError: If the file cannot be loaded or the result is invalid
    """
    config = ConfigManager(config_file=args.config)
    config.load_dict(build_config_from_args(args), ConfigSource.CLI_ARGS)
    config.validate()
    return config


def setup_logging(args: argparse.Namespace, config: ConfigManager) -> Logger:
    """
    Setup logging based on arguments and configuration.

    Args:
        args: Parsed arguments namespace
        config: Configuration manager

    Returns:
        Configured logger instance
    """
    log_level = "DEBUG" if args.debug else config.get("logging.level", "INFO")
    log_file = args.log_file or config.get("logging.file")

    logger = configure_logging(log_level, log_file)

    if log_file:
        logger.debug(f"Logging to file: {log_file}")

    return logger


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Handles argument parsing, configuration and logging, then passes
    control to main.py to run the command.

    Returns:
        Process exit code
    """
    try:
        # Parse arguments
        args = parse_arguments(argv)

        # Load configuration
        config = load_configuration(args)

        # Setup logging
        logger = setup_logging(args, config)

        # Import and run main
        from pathsieve.main import run_pathsieve

        return run_pathsieve(args, config, logger)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except PathSieveError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return int(e.error_code)

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
