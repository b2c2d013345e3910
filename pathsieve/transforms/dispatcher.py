#!/usr/bin/env python3
"""Transform dispatcher: run a processor over every filtered file.

This module drives the filter engine for one or more roots and hands each
matched file to an injected processor:
- Roots resolved and validated in input order before any processing
- Invalid roots either fatal or skipped (lenient mode)
- "File: <absolute path>" header built for every file
- Preview-only and confirm gates checked right before each mutating call
- Lazy results: processor return values are yielded as files are found

Example:
    >>> dispatcher = TransformDispatcher(DisplayProcessor(), include=[r"\\.md$"])
    >>> dispatcher.run(["/notes", "/docs"])
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Union

from pathsieve.core.constants import HEADER_FORMAT
from pathsieve.core.file_ops import FileHandle
from pathsieve.core.logging import get_logger
from pathsieve.core.validators import RootNotDirectoryError, RootNotFoundError, validate_root
from pathsieve.filtering.engine import FileFilterEngine
from pathsieve.transforms.base import Processor, as_processor

ConfirmCallback = Callable[[FileHandle, str], bool]
RootsArg = Union[str, "os.PathLike[str]", Sequence[Union[str, "os.PathLike[str]"]]]


@dataclass(frozen=True)
class RootSpec:
    """One user-supplied root directory.

    Attributes:
        literal: The root exactly as given
        resolved: Absolute path, known to be an existing directory
    """

    literal: str
    resolved: str

    @classmethod
    def from_argument(cls, root: Union[str, "os.PathLike[str]"]) -> "RootSpec":
        """Resolve and validate a root argument.

        Raises:
            RootNotFoundError: If the root does not exist
            RootNotDirectoryError: If the root is not a directory
        """
        return cls(literal=os.fspath(root), resolved=validate_root(root))


def format_header(handle: FileHandle) -> str:
    """Header line handed to processors with each file."""
    return HEADER_FORMAT.format(path=handle.path)


def _as_root_list(roots: RootsArg) -> List[Union[str, "os.PathLike[str]"]]:
    if isinstance(roots, (str, os.PathLike)):
        return [roots]
    return list(roots)


class TransformDispatcher:
    """Invokes a processor once per matched file across several roots.

    Roots are visited in the order supplied and files within a root in
    enumeration order. The include/exclude patterns are compiled once, in
    the constructor, and shared by every root.
    """

    def __init__(
        self,
        processor: Union[Processor, Callable[[FileHandle, str], Any]],
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        *,
        case_sensitive: bool = False,
        preview_only: bool = False,
        confirm: Optional[ConfirmCallback] = None,
        skip_invalid_roots: bool = False,
        prune_directories: bool = False,
        follow_symlinks: bool = False,
    ):
        """Initialize the dispatcher.

        Args:
            processor: Processor instance or ``(handle, header)`` callable
            include: Include regexes (empty selects everything)
            exclude: Exclude regexes
            case_sensitive: Match case-sensitively
            preview_only: Report what a mutating processor would do
                instead of calling it
            confirm: Asked before each mutating call; False skips the file
            skip_invalid_roots: Log and skip invalid roots instead of
                raising
            prune_directories: Skip subtrees whose directory is excluded
            follow_symlinks: Descend into symlinked directories

        Raises:
            InvalidPatternError: If any pattern does not compile
        """
        self.processor = as_processor(processor)
        self.engine = FileFilterEngine(
            include,
            exclude,
            case_sensitive=case_sensitive,
            prune_directories=prune_directories,
            follow_symlinks=follow_symlinks,
        )
        self.preview_only = preview_only
        self.confirm = confirm
        self.skip_invalid_roots = skip_invalid_roots
        self.skipped = 0
        self._logger = get_logger("pathsieve.transforms")

    def resolve_roots(self, roots: RootsArg) -> List[RootSpec]:
        """Resolve and validate every root, in order.

        Args:
            roots: One root or a sequence of roots

        Returns:
            RootSpecs for the valid roots

        Raises:
            RootNotFoundError: If a root does not exist (strict mode)
            RootNotDirectoryError: If a root is not a directory (strict mode)
        """
        specs = []
        for root in _as_root_list(roots):
            try:
                specs.append(RootSpec.from_argument(root))
            except (RootNotFoundError, RootNotDirectoryError) as e:
                if not self.skip_invalid_roots:
                    raise
                self._logger.error(f"Skipping root: {e.message}", root=os.fspath(root))
        return specs

    def transform(self, roots: RootsArg) -> Iterator[Any]:
        """Run the processor over the matched files of every root.

        Roots are validated before this returns; files are processed as the
        returned iterator is consumed.

        Args:
            roots: One root or a sequence of roots

        Returns:
            Iterator over the processor's return values
        """
        specs = self.resolve_roots(roots)
        return self._dispatch(specs)

    def _dispatch(self, specs: List[RootSpec]) -> Iterator[Any]:
        for spec in specs:
            with self._logger.add_context(root=spec.resolved):
                self._logger.debug("Processing root", literal=spec.literal)
                for handle in self.engine.filter(spec.resolved):
                    header = format_header(handle)
                    if not self._should_invoke(handle, header):
                        self.skipped += 1
                        continue
                    yield self.processor.apply(handle, header)

    def _should_invoke(self, handle: FileHandle, header: str) -> bool:
        """Preview/confirm gate, checked immediately before each call."""
        if not self.processor.mutating:
            return True

        if self.preview_only:
            self._logger.info(f"What if: {self.processor.describe(handle)}")
            return False

        if self.confirm is not None and not self.confirm(handle, header):
            self._logger.debug("Declined", path=handle.path)
            return False

        return True

    def run(self, roots: RootsArg) -> List[Any]:
        """Process every root to completion and call the processor's finish().

        Returns:
            Processor results in processing order
        """
        results = list(self.transform(roots))
        self.processor.finish()
        return results


def invoke_file_transform(
    roots: RootsArg,
    processor: Union[Processor, Callable[[FileHandle, str], Any]],
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
    **options: Any,
) -> Iterator[Any]:
    """Lazily run processor over the filtered files of roots.

    Keyword options are passed to TransformDispatcher.

    Returns:
        Iterator over the processor's return values
    """
    dispatcher = TransformDispatcher(processor, include, exclude, **options)
    return dispatcher.transform(roots)
