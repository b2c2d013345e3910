#!/usr/bin/env python3
r"""Filtered archive building.

This module packs the filtered files of one or more roots into a single zip:
- Discovery through the transform dispatcher, one entry per matched file
- Entries named <root leaf folder>/<path relative to root>
- Configurable handling of colliding entry names
- Existing destination deleted and recreated, never merged
- Nothing written at all when no file matches

State machine:
    IDLE -> DISCOVERING -> INITIALIZING -> WRITING -> CLOSED
    DISCOVERING -> NO_OP (no file matched)

Example:
    >>> compress_filtered_files(["/src/app"], "/tmp/app.zip", include=[r"\.py$"])
    '/tmp/app.zip'
"""

import os
import posixpath
import zipfile
from collections import Counter
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from pathsieve.archive.writer import ZipArchiveWriter
from pathsieve.core.constants import ArchiveCompression, CollisionPolicy, ErrorCode
from pathsieve.core.file_ops import (
    FileHandle,
    FileOperationError,
    delete_file,
    file_exists,
    read_all_bytes,
)
from pathsieve.core.logging import get_logger
from pathsieve.core.path_utils import archive_entry_name, resolve_path
from pathsieve.core.validators import (
    PathSieveError,
    validate_collision_policy,
    validate_compression,
    validate_destination,
)
from pathsieve.transforms.base import FunctionProcessor
from pathsieve.transforms.dispatcher import RootsArg, TransformDispatcher


class ArchiveState(Enum):
    """Lifecycle of one archive build."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    INITIALIZING = "initializing"
    WRITING = "writing"
    CLOSED = "closed"
    NO_OP = "no_op"


class ArchiveWriteError(PathSieveError):
    """Failure reading a source file or writing the destination archive."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        super().__init__(message, error_code)


class ArchiveCollisionError(PathSieveError):
    """Two matched files map to the same archive-internal name."""

    def __init__(self, names: List[str]):
        shown = ", ".join(names[:5])
        if len(names) > 5:
            shown += f", ... ({len(names)} names)"
        super().__init__(f"Archive entry names collide: {shown}", ErrorCode.CONFLICT)
        self.names = names


@dataclass(frozen=True)
class ZipFileEntry:
    """A matched file paired with the root it was discovered under.

    Attributes:
        file: The matched file
        root: Absolute root directory the file was found in
        archive_name: Name the file is stored under in the archive
    """

    file: FileHandle
    root: str
    archive_name: str

    @classmethod
    def create(cls, file: FileHandle, root: str) -> "ZipFileEntry":
        return cls(file=file, root=root, archive_name=archive_entry_name(root, file.path))


def _suffixed_name(name: str, counter: int) -> str:
    directory, base = posixpath.split(name)
    stem, ext = posixpath.splitext(base)
    return posixpath.join(directory, f"{stem} ({counter}){ext}")


def resolve_collisions(entries: List[ZipFileEntry], policy: CollisionPolicy) -> List[ZipFileEntry]:
    """Apply a collision policy to entries sharing an archive name.

    Args:
        entries: Entries in discovery order
        policy: ERROR raises, SUFFIX renames later duplicates, LAST keeps
            only the last entry per name

    Returns:
        Entries with unique archive names, in discovery order

    Raises:
        ArchiveCollisionError: Under the ERROR policy, if any name repeats
    """
    counts = Counter(entry.archive_name for entry in entries)
    duplicates = [name for name, count in counts.items() if count > 1]
    if not duplicates:
        return entries

    logger = get_logger("pathsieve.archive")

    if policy == CollisionPolicy.ERROR:
        raise ArchiveCollisionError(duplicates)

    if policy == CollisionPolicy.LAST:
        last_index: Dict[str, int] = {}
        for index, entry in enumerate(entries):
            last_index[entry.archive_name] = index
        kept = []
        for index, entry in enumerate(entries):
            if last_index[entry.archive_name] == index:
                kept.append(entry)
            else:
                logger.warning(
                    f"Entry replaced by a later file: {entry.archive_name}", path=entry.file.path
                )
        return kept

    # SUFFIX
    taken = set(counts)
    seen = set()
    renamed = []
    for entry in entries:
        name = entry.archive_name
        if name not in seen:
            seen.add(name)
            renamed.append(entry)
            continue
        counter = 2
        while _suffixed_name(name, counter) in taken:
            counter += 1
        new_name = _suffixed_name(name, counter)
        taken.add(new_name)
        logger.warning(
            f"Entry renamed to avoid collision: {name} -> {new_name}", path=entry.file.path
        )
        renamed.append(replace(entry, archive_name=new_name))
    return renamed


class ArchiveBuilder:
    """Builds one zip archive from the filtered files of several roots.

    The destination suffix is checked in the constructor, before any
    filesystem access.
    """

    def __init__(
        self,
        destination: str,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
        *,
        case_sensitive: bool = False,
        prune_directories: bool = False,
        follow_symlinks: bool = False,
        skip_invalid_roots: bool = False,
        on_collision: Union[str, CollisionPolicy] = CollisionPolicy.ERROR,
        compression: Union[str, ArchiveCompression] = ArchiveCompression.DEFLATED,
    ):
        """Initialize archive builder.

        Args:
            destination: Archive path; must end in .zip
            include: Include regexes (empty selects everything)
            exclude: Exclude regexes
            case_sensitive: Match case-sensitively
            prune_directories: Skip subtrees whose directory is excluded
            follow_symlinks: Descend into symlinked directories
            skip_invalid_roots: Log and skip invalid roots instead of raising
            on_collision: Policy for colliding archive names
            compression: Zip compression method

        Raises:
            InvalidDestinationExtensionError: If destination is not a .zip
            InvalidPatternError: If any pattern does not compile
            ValidationError: If the policy or compression is unknown
        """
        self.destination = validate_destination(destination)
        self.collision_policy = validate_collision_policy(on_collision)
        self.compression = validate_compression(compression)
        self._dispatcher = TransformDispatcher(
            FunctionProcessor(lambda handle, header: handle, name="collect"),
            include,
            exclude,
            case_sensitive=case_sensitive,
            prune_directories=prune_directories,
            follow_symlinks=follow_symlinks,
            skip_invalid_roots=skip_invalid_roots,
        )
        self.state = ArchiveState.IDLE
        self.entries: List[ZipFileEntry] = []
        self._logger = get_logger("pathsieve.archive")

    def get_files_to_zip(self, roots: RootsArg) -> List[ZipFileEntry]:
        """Discover the entries to archive, root by root.

        Every root is validated before the first one is traversed. A stale
        archive at the destination is never picked up as a source.

        Returns:
            Entries in root-then-enumeration order
        """
        self.state = ArchiveState.DISCOVERING
        destination = resolve_path(self.destination)

        entries = []
        for spec in self._dispatcher.resolve_roots(roots):
            for handle in self._dispatcher.transform([spec.resolved]):
                if handle.path == destination:
                    continue
                entries.append(ZipFileEntry.create(handle, spec.resolved))

        self.entries = entries
        self._logger.debug("Discovery finished", entries=len(entries))
        return entries

    def initialize_zip_target(self) -> str:
        """Resolve the destination, deleting any existing file there.

        Returns:
            Absolute destination path

        Raises:
            ArchiveWriteError: If the old file cannot be removed or the
                parent directory cannot be created
        """
        self.state = ArchiveState.INITIALIZING
        destination = resolve_path(self.destination)

        if file_exists(destination):
            self._logger.debug("Removing existing archive", path=destination)
            try:
                delete_file(destination)
            except FileOperationError as e:
                raise ArchiveWriteError(
                    f"Cannot replace archive {destination}: {e.message}", e.error_code
                )

        parent = os.path.dirname(destination)
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as e:
            raise ArchiveWriteError(f"Cannot create directory {parent}: {e.strerror or e}")

        return destination

    def add_files_to_zip(self, entries: List[ZipFileEntry], destination: str) -> str:
        """Write every entry into the archive, in order.

        Any failure aborts the whole write; the archive may be left
        partially written.

        Returns:
            The destination path

        Raises:
            ArchiveWriteError: On any read or write failure
        """
        self.state = ArchiveState.WRITING
        writer = ZipArchiveWriter(destination, mode="a", compression=self.compression)

        try:
            writer.open()
        except (OSError, zipfile.BadZipFile) as e:
            raise ArchiveWriteError(f"Cannot open archive {destination}: {e}") from e

        try:
            for entry in entries:
                try:
                    data = read_all_bytes(entry.file.path)
                except FileOperationError as e:
                    raise ArchiveWriteError(e.message, e.error_code) from e

                try:
                    writer.write_entry(entry.archive_name, data, entry.file.mtime)
                except (OSError, ValueError, zipfile.BadZipFile, zipfile.LargeZipFile) as e:
                    raise ArchiveWriteError(
                        f"Cannot write {entry.archive_name} to {destination}: {e}"
                    ) from e
        except BaseException:
            self._abort(writer, destination)
            raise

        try:
            writer.close()
        except OSError as e:
            raise ArchiveWriteError(f"Cannot finalize archive {destination}: {e}") from e

        self.state = ArchiveState.CLOSED
        return destination

    def _abort(self, writer: ZipArchiveWriter, destination: str) -> None:
        """Close the writer after a failed write without masking that failure."""
        try:
            writer.close()
        except Exception as e:
            self._logger.warning(
                f"Cannot close archive after failed write: {e}", destination=destination
            )

    def build(self, roots: RootsArg) -> Optional[str]:
        """Run discovery, initialization and writing.

        Returns:
            The absolute destination path, or None when no file matched
            (the destination is then left untouched)
        """
        entries = self.get_files_to_zip(roots)

        if not entries:
            self.state = ArchiveState.NO_OP
            self._logger.warning(
                "No files matched; archive not created", destination=self.destination
            )
            return None

        entries = resolve_collisions(entries, self.collision_policy)
        destination = self.initialize_zip_target()
        self.add_files_to_zip(entries, destination)

        self._logger.info("Archive written", destination=destination, entries=len(entries))
        return destination


def compress_filtered_files(
    roots: RootsArg,
    destination: str,
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None,
    **options: Any,
) -> Optional[str]:
    """Archive the filtered files of roots into destination.

    Keyword options are passed to ArchiveBuilder.

    Returns:
        The absolute destination path, or None when no file matched
    """
    builder = ArchiveBuilder(destination, include, exclude, **options)
    return builder.build(roots)
