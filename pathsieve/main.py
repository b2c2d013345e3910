#!/usr/bin/env python3
"""Command runner for PathSieve.

This module handles:
- Component initialization (ConfigManager, processor registry, plugins)
- Dispatch of the filter-files, transform and compress commands
- Mapping of errors to process exit codes

Example:
    >>> from pathsieve.main import run_pathsieve
    >>> run_pathsieve(args, config, logger)
"""

import argparse
import sys
from typing import Any, Dict, Optional, TextIO, Union

from pathsieve.archive.builder import ArchiveBuilder
from pathsieve.core.config import ConfigManager, ConfigSource
from pathsieve.core.constants import ErrorCode
from pathsieve.core.file_ops import FileHandle
from pathsieve.core.logging import Logger
from pathsieve.core.validators import PathSieveError
from pathsieve.transforms.base import Processor
from pathsieve.transforms.dispatcher import TransformDispatcher
from pathsieve.transforms.registry import ProcessorRegistry, default_registry, load_plugins


class PathSieveMain:
    """
    Main class for running one PathSieve command.

    Handles component setup, command dispatch and exit codes.
    """

    def __init__(
        self,
        args: argparse.Namespace,
        config: Union[ConfigManager, Dict[str, Any]],
        logger: Logger,
        stdout: Optional[TextIO] = None,
    ):
        """
        Initialize PathSieve main controller.

        Args:
            args: Parsed command-line arguments
            config: Configuration manager, or a plain configuration dictionary
            logger: Logger instance
            stdout: Stream for command output (defaults to sys.stdout)
        """
        self.args = args
        self.logger = logger
        self._stdout = stdout

        if isinstance(config, ConfigManager):
            self.config_manager = config
        else:
            self.config_manager = ConfigManager(load_environment=False)
            self.config_manager.load_dict(config, ConfigSource.CLI_ARGS)

        self.registry: Optional[ProcessorRegistry] = None

    @property
    def stdout(self) -> TextIO:
        return self._stdout if self._stdout is not None else sys.stdout

    def initialize_components(self) -> None:
        """
        Build the processor registry and load configured plugins.

        Raises:
            ProcessorError: If a plugin cannot be imported
        """
        self.logger.debug("Creating processor registry")
        self.registry = default_registry()

        plugins = self.config_manager.get("processors.plugins") or []
        if plugins:
            names = load_plugins(self.registry, plugins)
            self.logger.debug(f"Loaded plugins: {', '.join(names)}")

    def _option(self, name: str, default: Any = False) -> Any:
        return getattr(self.args, name, default)

    def _filter_options(self) -> Dict[str, Any]:
        """Pattern and traversal options, command line over configuration."""
        return {
            "include": self.config_manager.get("filters.include") or [],
            "exclude": self.config_manager.get("filters.exclude") or [],
            "case_sensitive": bool(self.config_manager.get("filters.case_sensitive", False)),
            "prune_directories": bool(
                self.config_manager.get("traversal.prune_directories", False)
            ),
            "follow_symlinks": bool(self.config_manager.get("traversal.follow_symlinks", False)),
        }

    def run_filter_files(self) -> int:
        """Print the absolute path of every matched file, one per line."""
        options = self._filter_options()
        dispatcher = TransformDispatcher(
            lambda handle, header: handle.path,
            options.pop("include"),
            options.pop("exclude"),
            skip_invalid_roots=self._option("skip_invalid_roots"),
            **options,
        )

        count = 0
        for path in dispatcher.transform(self.args.roots):
            print(path, file=self.stdout)
            count += 1

        self.logger.debug("Filter finished", matched=count)
        return ErrorCode.SUCCESS

    def _confirm(self, processor: Processor):
        def confirm(handle: FileHandle, header: str) -> bool:
            answer = input(f"{processor.describe(handle)}? [y/N] ")
            return answer.strip().lower() in ("y", "yes")

        return confirm

    def _processor_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {}
        template = self._option("template", None)
        if template is not None:
            options["template"] = template
        return options

    def run_transform(self) -> int:
        """Run the selected processor over every matched file."""
        if self.registry is None:
            self.initialize_components()

        processor = self.registry.create(self.args.action, **self._processor_options())
        options = self._filter_options()

        dispatcher = TransformDispatcher(
            processor,
            options.pop("include"),
            options.pop("exclude"),
            preview_only=self._option("dry_run"),
            confirm=self._confirm(processor) if self._option("confirm") else None,
            skip_invalid_roots=self._option("skip_invalid_roots"),
            **options,
        )

        results = dispatcher.run(self.args.roots)

        self.logger.debug(
            f"Action {processor.name} finished",
            processed=len(results),
            skipped=dispatcher.skipped,
        )
        return ErrorCode.SUCCESS

    def run_compress(self) -> int:
        """Archive every matched file and print the destination."""
        options = self._filter_options()

        builder = ArchiveBuilder(
            self.args.destination,
            options.pop("include"),
            options.pop("exclude"),
            skip_invalid_roots=self._option("skip_invalid_roots"),
            on_collision=self.config_manager.get("archive.on_collision", "error"),
            compression=self.config_manager.get("archive.compression", "deflated"),
            **options,
        )

        destination = builder.build(self.args.roots)
        if destination is not None:
            print(destination, file=self.stdout)
        return ErrorCode.SUCCESS

    def run_command(self) -> int:
        """Dispatch to the selected command."""
        commands = {
            "filter-files": self.run_filter_files,
            "transform": self.run_transform,
            "compress": self.run_compress,
        }
        handler = commands.get(self.args.command)
        if handler is None:
            self.logger.error(f"Unknown command: {self.args.command}")
            return ErrorCode.INVALID_INPUT
        return handler()

    def run(self) -> int:
        """
        Run the selected command.

        Returns:
            Exit code (0 for success, the error's code on failure)
        """
        try:
            return int(self.run_command())

        except PathSieveError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            return int(e.error_code)

        except KeyboardInterrupt:
            self.logger.info("Interrupted by user")
            return 130


def run_pathsieve(
    args: argparse.Namespace, config: Union[ConfigManager, Dict[str, Any]], logger: Logger
) -> int:
    """
    Main entry point for running a PathSieve command.

    Args:
        args: Parsed command-line arguments
        config: Configuration manager or dictionary
        logger: Logger instance

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    # Create main controller
    main = PathSieveMain(args, config, logger)

    # Run
    return main.run()


def main() -> int:
    """
    Entry point when run as standalone script.

    Typically called via cli.py, but can be run directly for testing.
    """
    # Import CLI for argument parsing
    from pathsieve.cli import main as cli_main

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
