#!/usr/bin/env python3
"""Tests for filtered archive building."""

import errno
import os
import zipfile
from unittest.mock import patch

import pytest

from pathsieve.archive.builder import (
    ArchiveBuilder,
    ArchiveCollisionError,
    ArchiveState,
    ArchiveWriteError,
    ZipFileEntry,
    compress_filtered_files,
    resolve_collisions,
)
from pathsieve.core.constants import CollisionPolicy, ErrorCode
from pathsieve.core.file_ops import FileHandle, FileOperationError
from pathsieve.core.validators import (
    InvalidDestinationExtensionError,
    InvalidPatternError,
    RootNotFoundError,
    ValidationError,
)


def zip_contents(path):
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def entry(root, relative, archive_name):
    handle = FileHandle(path=os.path.join(root, relative), relative_path=relative, size=1, mtime=0.0)
    return ZipFileEntry(file=handle, root=root, archive_name=archive_name)


class TestCompressFilteredFiles:
    """End-to-end archive building."""

    def test_round_trip(self, simple_root, temp_dir):
        destination = temp_dir / "out.zip"

        result = compress_filtered_files([str(simple_root)], str(destination))

        assert result == str(destination)
        assert zip_contents(destination) == {"proj/a.txt": b"alpha", "proj/sub/b.txt": b"beta"}

    def test_include_and_exclude(self, source_dir, temp_dir):
        destination = temp_dir / "out.zip"

        compress_filtered_files(str(source_dir), str(destination), [r"\.(txt|md)$"], [r"^docs/"])

        assert sorted(zip_contents(destination)) == [
            "source/README.md",
            "source/file.txt",
            "source/subdir/nested.txt",
        ]

    def test_idempotent_overwrite(self, simple_root, temp_dir):
        destination = temp_dir / "out.zip"

        compress_filtered_files([str(simple_root)], str(destination))
        first = zip_contents(destination)
        compress_filtered_files([str(simple_root)], str(destination))

        assert zip_contents(destination) == first
        with zipfile.ZipFile(destination) as zf:
            assert len(zf.namelist()) == 2

    def test_existing_destination_is_replaced_not_merged(self, simple_root, temp_dir):
        destination = temp_dir / "out.zip"
        with zipfile.ZipFile(destination, "w") as zf:
            zf.writestr("stale.txt", b"old")

        compress_filtered_files([str(simple_root)], str(destination))

        assert "stale.txt" not in zip_contents(destination)

    def test_no_match_leaves_no_destination(self, simple_root, temp_dir, caplog):
        destination = temp_dir / "out.zip"

        result = compress_filtered_files([str(simple_root)], str(destination), [r"\.nothing$"])

        assert result is None
        assert not destination.exists()
        assert "No files matched" in caplog.text

    def test_no_match_keeps_existing_destination(self, simple_root, temp_dir):
        destination = temp_dir / "out.zip"
        destination.write_bytes(b"previous archive")

        compress_filtered_files([str(simple_root)], str(destination), [r"\.nothing$"])

        assert destination.read_bytes() == b"previous archive"

    def test_multiple_roots_with_distinct_leaves(self, simple_root, temp_dir):
        other = temp_dir / "other"
        other.mkdir()
        (other / "c.txt").write_text("gamma")
        destination = temp_dir / "out.zip"

        compress_filtered_files([str(simple_root), str(other)], str(destination))

        assert zip_contents(destination) == {
            "proj/a.txt": b"alpha",
            "proj/sub/b.txt": b"beta",
            "other/c.txt": b"gamma",
        }
        with zipfile.ZipFile(destination) as zf:
            assert zf.namelist() == ["proj/a.txt", "proj/sub/b.txt", "other/c.txt"]

    def test_bad_extension_touches_nothing(self, simple_root, temp_dir):
        destination = temp_dir / "out.tar"

        with patch("pathsieve.archive.builder.delete_file") as mock_delete, patch(
            "pathsieve.core.file_ops.os.walk"
        ) as mock_walk:
            with pytest.raises(InvalidDestinationExtensionError) as exc_info:
                compress_filtered_files([str(simple_root)], str(destination))

        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT
        mock_delete.assert_not_called()
        mock_walk.assert_not_called()
        assert not destination.exists()

    def test_missing_root_fails_before_destination_touched(self, simple_root, temp_dir):
        destination = temp_dir / "out.zip"
        destination.write_bytes(b"keep me")

        with pytest.raises(RootNotFoundError):
            compress_filtered_files([str(simple_root), str(temp_dir / "missing")], str(destination))

        assert destination.read_bytes() == b"keep me"

    def test_skip_invalid_roots(self, simple_root, temp_dir):
        destination = temp_dir / "out.zip"

        compress_filtered_files(
            [str(temp_dir / "missing"), str(simple_root)], str(destination), skip_invalid_roots=True
        )

        assert sorted(zip_contents(destination)) == ["proj/a.txt", "proj/sub/b.txt"]

    def test_invalid_pattern_fails_before_traversal(self, simple_root, temp_dir):
        with patch("pathsieve.core.file_ops.os.walk") as mock_walk:
            with pytest.raises(InvalidPatternError):
                compress_filtered_files([str(simple_root)], str(temp_dir / "out.zip"), ["(bad"])
        mock_walk.assert_not_called()

    def test_destination_inside_root_is_not_archived(self, simple_root):
        destination = simple_root / "bundle.zip"
        compress_filtered_files([str(simple_root)], str(destination))

        # Second build must not pick up the archive from the first one
        compress_filtered_files([str(simple_root)], str(destination))

        assert sorted(zip_contents(destination)) == ["proj/a.txt", "proj/sub/b.txt"]

    def test_creates_missing_parent_directory(self, simple_root, temp_dir):
        destination = temp_dir / "build" / "dist" / "out.zip"
        compress_filtered_files([str(simple_root)], str(destination))
        assert destination.exists()

    def test_upper_case_extension(self, simple_root, temp_dir):
        destination = temp_dir / "OUT.ZIP"
        assert compress_filtered_files([str(simple_root)], str(destination)) == str(destination)


class TestArchiveBuilderStates:
    """Tests for the build state machine."""

    def test_successful_build_ends_closed(self, simple_root, temp_dir):
        builder = ArchiveBuilder(str(temp_dir / "out.zip"))
        assert builder.state == ArchiveState.IDLE

        builder.build([str(simple_root)])

        assert builder.state == ArchiveState.CLOSED
        assert [e.archive_name for e in builder.entries] == ["proj/a.txt", "proj/sub/b.txt"]

    def test_no_match_ends_no_op(self, simple_root, temp_dir):
        builder = ArchiveBuilder(str(temp_dir / "out.zip"), include=[r"\.nothing$"])
        builder.build([str(simple_root)])
        assert builder.state == ArchiveState.NO_OP

    def test_entries_carry_root(self, simple_root, temp_dir):
        builder = ArchiveBuilder(str(temp_dir / "out.zip"))
        entries = builder.get_files_to_zip([str(simple_root)])

        assert builder.state == ArchiveState.DISCOVERING
        assert all(e.root == str(simple_root) for e in entries)
        assert entries[1].file.relative_path == "sub/b.txt"

    def test_initialize_deletes_existing(self, temp_dir):
        destination = temp_dir / "out.zip"
        destination.write_bytes(b"old")
        builder = ArchiveBuilder(str(destination))

        assert builder.initialize_zip_target() == str(destination)
        assert builder.state == ArchiveState.INITIALIZING
        assert not destination.exists()

    def test_initialize_delete_failure(self, temp_dir):
        destination = temp_dir / "out.zip"
        destination.write_bytes(b"old")
        builder = ArchiveBuilder(str(destination))

        denied = PermissionError(errno.EACCES, "Permission denied")
        with patch("pathsieve.core.file_ops.os.remove", side_effect=denied):
            with pytest.raises(ArchiveWriteError) as exc_info:
                builder.initialize_zip_target()
        assert exc_info.value.error_code == ErrorCode.PERMISSION_DENIED
        assert str(destination) in exc_info.value.message

    def test_unreadable_source_aborts_write(self, simple_root, temp_dir):
        builder = ArchiveBuilder(str(temp_dir / "out.zip"))
        real_open = open

        def guarded_open(path, mode="r", *args, **kwargs):
            if str(path).endswith("b.txt") and "b" in mode:
                raise PermissionError(errno.EACCES, "Permission denied", str(path))
            return real_open(path, mode, *args, **kwargs)

        with patch("builtins.open", side_effect=guarded_open):
            with pytest.raises(ArchiveWriteError) as exc_info:
                builder.build([str(simple_root)])

        assert "b.txt" in exc_info.value.message
        assert exc_info.value.error_code == ErrorCode.PERMISSION_DENIED
        assert builder.state == ArchiveState.WRITING

    def test_close_failure_keeps_original_error(self, simple_root, temp_dir, caplog):
        builder = ArchiveBuilder(str(temp_dir / "out.zip"))
        unreadable = FileOperationError(
            "Cannot read file b.txt: Permission denied", ErrorCode.PERMISSION_DENIED
        )

        with patch(
            "pathsieve.archive.builder.read_all_bytes", side_effect=[b"alpha", unreadable]
        ), patch(
            "pathsieve.archive.writer.zipfile.ZipFile.close",
            side_effect=RuntimeError("device went away"),
        ):
            with pytest.raises(ArchiveWriteError) as exc_info:
                builder.build([str(simple_root)])

        assert exc_info.value.error_code == ErrorCode.PERMISSION_DENIED
        assert "b.txt" in exc_info.value.message
        assert exc_info.value.__cause__ is unreadable
        assert "Cannot close archive after failed write: device went away" in caplog.text

    def test_unknown_policy_rejected(self, temp_dir):
        with pytest.raises(ValidationError) as exc_info:
            ArchiveBuilder(str(temp_dir / "out.zip"), on_collision="merge")
        assert exc_info.value.error_code == ErrorCode.INVALID_INPUT


class TestCollisions:
    """Tests for archive name collision handling."""

    @pytest.fixture
    def twin_roots(self, temp_dir):
        """Two roots with the same leaf name and an overlapping file."""
        first = temp_dir / "one" / "app"
        second = temp_dir / "two" / "app"
        for root, text in ((first, "first"), (second, "second")):
            root.mkdir(parents=True)
            (root / "config.txt").write_text(text)
        (second / "extra.txt").write_text("extra")
        return first, second

    def test_error_policy_is_default(self, twin_roots, temp_dir):
        destination = temp_dir / "out.zip"
        destination.write_bytes(b"keep me")

        with pytest.raises(ArchiveCollisionError) as exc_info:
            compress_filtered_files([str(r) for r in twin_roots], str(destination))

        assert exc_info.value.error_code == ErrorCode.CONFLICT
        assert exc_info.value.names == ["app/config.txt"]
        assert destination.read_bytes() == b"keep me"

    def test_suffix_policy(self, twin_roots, temp_dir):
        destination = temp_dir / "out.zip"

        compress_filtered_files([str(r) for r in twin_roots], str(destination), on_collision="suffix")

        assert zip_contents(destination) == {
            "app/config.txt": b"first",
            "app/config (2).txt": b"second",
            "app/extra.txt": b"extra",
        }

    def test_last_policy(self, twin_roots, temp_dir):
        destination = temp_dir / "out.zip"

        compress_filtered_files([str(r) for r in twin_roots], str(destination), on_collision="last")

        assert zip_contents(destination) == {"app/config.txt": b"second", "app/extra.txt": b"extra"}

    def test_resolve_without_duplicates_is_identity(self):
        entries = [entry("/r", "a.txt", "r/a.txt"), entry("/r", "b.txt", "r/b.txt")]
        assert resolve_collisions(entries, CollisionPolicy.ERROR) is entries

    def test_suffix_skips_taken_names(self):
        entries = [
            entry("/x", "a.txt", "r/a.txt"),
            entry("/y", "a.txt", "r/a.txt"),
            entry("/z", "a (2).txt", "r/a (2).txt"),
        ]
        names = [e.archive_name for e in resolve_collisions(entries, CollisionPolicy.SUFFIX)]
        assert names == ["r/a.txt", "r/a (3).txt", "r/a (2).txt"]

    def test_suffix_without_extension(self):
        entries = [entry("/x", "Makefile", "r/Makefile"), entry("/y", "Makefile", "r/Makefile")]
        names = [e.archive_name for e in resolve_collisions(entries, CollisionPolicy.SUFFIX)]
        assert names == ["r/Makefile", "r/Makefile (2)"]

    def test_last_keeps_discovery_order(self):
        entries = [
            entry("/x", "a.txt", "r/a.txt"),
            entry("/x", "b.txt", "r/b.txt"),
            entry("/y", "a.txt", "r/a.txt"),
        ]
        kept = resolve_collisions(entries, CollisionPolicy.LAST)
        assert [(e.root, e.archive_name) for e in kept] == [("/x", "r/b.txt"), ("/y", "r/a.txt")]
