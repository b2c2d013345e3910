"""Tests for the command runner.

This module tests PathSieveMain including:
- Component initialization and plugin loading
- The filter-files, transform and compress commands
- Preview and confirmation of renames
- Exit codes for failures
"""

import argparse
import io
import logging
import textwrap
import zipfile
from unittest.mock import patch


from pathsieve.core.config import ConfigManager
from pathsieve.core.constants import ErrorCode
from pathsieve.core.logging import get_logger
from pathsieve.main import PathSieveMain, run_pathsieve


def runner_logger():
    """Component logger; leaves the application logger propagating to caplog."""
    return get_logger("pathsieve.main")


def make_args(command, roots, **kwargs):
    """Namespace shaped like parse_arguments() output."""
    defaults = {
        "command": command,
        "roots": [str(root) for root in roots],
        "skip_invalid_roots": False,
        "debug": False,
        "log_file": None,
        "config": None,
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


def run(args, config=None):
    """Run one command, returning (exit code, captured stdout)."""
    out = io.StringIO()
    main = PathSieveMain(args, config or {}, runner_logger(), stdout=out)
    return main.run(), out.getvalue().splitlines()


class TestInitialization:
    """Test PathSieveMain setup."""

    def test_dict_config_is_layered_over_defaults(self):
        main = PathSieveMain(
            make_args("filter-files", []), {"filters": {"include": ["x"]}}, runner_logger()
        )

        assert main.config_manager.get("filters.include") == ["x"]
        assert main.config_manager.get("archive.on_collision") == "error"

    def test_config_manager_is_used_directly(self):
        config = ConfigManager(load_environment=False)
        main = PathSieveMain(make_args("filter-files", []), config, runner_logger())
        assert main.config_manager is config

    def test_initialize_components(self):
        main = PathSieveMain(make_args("transform", []), {}, runner_logger())
        main.initialize_components()

        assert main.registry.names() == ["clipboard", "display", "rename"]

    def test_unknown_command(self):
        code, _ = run(make_args("explode", []))
        assert code == ErrorCode.INVALID_INPUT


class TestFilterFiles:
    """Test the filter-files command."""

    def test_prints_absolute_paths(self, source_dir):
        code, lines = run(
            make_args("filter-files", [source_dir]),
            {"filters": {"include": [r"\.txt$"]}},
        )

        assert code == 0
        assert lines == [str(source_dir / "file.txt"), str(source_dir / "subdir" / "nested.txt")]

    def test_exclude_wins(self, source_dir):
        _, lines = run(
            make_args("filter-files", [source_dir]),
            {"filters": {"include": [r"\.md$"], "exclude": ["^docs/"]}},
        )

        assert lines == [str(source_dir / "README.md")]

    def test_case_sensitivity_from_config(self, source_dir):
        config = {"filters": {"include": ["readme"]}}
        _, lines = run(make_args("filter-files", [source_dir]), config)
        assert lines == [str(source_dir / "README.md")]

        config["filters"]["case_sensitive"] = True
        _, lines = run(make_args("filter-files", [source_dir]), config)
        assert lines == []

    def test_missing_root(self, temp_dir, capsys):
        code, lines = run(make_args("filter-files", [temp_dir / "missing"]))

        assert code == ErrorCode.NOT_FOUND
        assert lines == []
        assert "Root directory does not exist" in capsys.readouterr().err

    def test_skip_invalid_roots(self, temp_dir, simple_root):
        code, lines = run(
            make_args("filter-files", [temp_dir / "missing", simple_root], skip_invalid_roots=True)
        )

        assert code == 0
        assert lines == [str(simple_root / "a.txt"), str(simple_root / "sub" / "b.txt")]


class TestTransform:
    """Test the transform command."""

    def test_display(self, simple_root, capsys):
        code, _ = run(make_args("transform", [simple_root], action="display"))

        assert code == 0
        out = capsys.readouterr().out
        assert f"File: {simple_root / 'a.txt'}\nalpha\n" in out
        assert f"File: {simple_root / 'sub' / 'b.txt'}\nbeta\n" in out

    def test_unknown_action(self, simple_root, capsys):
        code, _ = run(make_args("transform", [simple_root], action="shred"))

        assert code == ErrorCode.INVALID_INPUT
        assert "Unknown action: shred" in capsys.readouterr().err

    def test_rename_requires_template(self, simple_root):
        code, _ = run(make_args("transform", [simple_root], action="rename"))
        assert code == ErrorCode.INVALID_INPUT

    def test_rename(self, simple_root):
        code, _ = run(
            make_args(
                "transform",
                [simple_root],
                action="rename",
                template="{{ stem | upper }}{{ suffix }}",
            )
        )

        assert code == 0
        assert (simple_root / "A.txt").read_text() == "alpha"
        assert (simple_root / "sub" / "B.txt").read_text() == "beta"

    def test_dry_run_changes_nothing(self, simple_root, caplog):
        caplog.set_level(logging.INFO, logger="pathsieve")

        code, _ = run(
            make_args(
                "transform",
                [simple_root],
                action="rename",
                template="{{ index }}{{ suffix }}",
                dry_run=True,
            )
        )

        assert code == 0
        assert sorted(p.name for p in simple_root.rglob("*.txt")) == ["a.txt", "b.txt"]
        assert f"What if: rename {simple_root / 'a.txt'} -> 1.txt" in caplog.text
        assert f"What if: rename {simple_root / 'sub' / 'b.txt'} -> 2.txt" in caplog.text

    def test_confirm(self, simple_root):
        args = make_args(
            "transform",
            [simple_root],
            action="rename",
            template="{{ stem }}_{{ index }}{{ suffix }}",
            confirm=True,
        )

        with patch("builtins.input", side_effect=["y", "no"]) as mock_input:
            code, _ = run(args)

        assert code == 0
        assert mock_input.call_count == 2
        assert "rename" in mock_input.call_args_list[0][0][0]
        assert (simple_root / "a_1.txt").exists()
        assert (simple_root / "sub" / "b.txt").exists()
        assert not (simple_root / "sub" / "b_2.txt").exists()

    def test_plugin_action(self, simple_root, tmp_path, monkeypatch, capsys):
        (tmp_path / "sieve_main_plugins.py").write_text(
            textwrap.dedent(
                '''
                from pathsieve.transforms.base import Processor


                class ByteCount(Processor):
                    action_name = "byte-count"

                    def process(self, handle, header):
                        print(f"{handle.name} {handle.size}")
                        return handle.size
                '''
            )
        )
        monkeypatch.syspath_prepend(str(tmp_path))

        code, _ = run(
            make_args("transform", [simple_root], action="byte-count"),
            {"processors": {"plugins": ["sieve_main_plugins:ByteCount"]}},
        )

        assert code == 0
        assert capsys.readouterr().out.splitlines() == ["a.txt 5", "b.txt 4"]

    def test_missing_plugin_module(self, simple_root):
        code, _ = run(
            make_args("transform", [simple_root], action="display"),
            {"processors": {"plugins": ["no_such_module_here:Thing"]}},
        )
        assert code == ErrorCode.DEPENDENCY_ERROR


class TestCompress:
    """Test the compress command."""

    def test_writes_archive(self, simple_root, temp_dir):
        destination = temp_dir / "out" / "proj.zip"

        code, lines = run(
            make_args("compress", [simple_root], destination=str(destination)),
            {"archive": {"compression": "stored"}},
        )

        assert code == 0
        assert lines == [str(destination)]
        with zipfile.ZipFile(destination) as zf:
            assert zf.namelist() == ["proj/a.txt", "proj/sub/b.txt"]
            assert zf.getinfo("proj/a.txt").compress_type == zipfile.ZIP_STORED

    def test_no_match(self, simple_root, temp_dir):
        destination = temp_dir / "proj.zip"

        code, lines = run(
            make_args("compress", [simple_root], destination=str(destination)),
            {"filters": {"include": [r"\.nothing$"]}},
        )

        assert code == 0
        assert lines == []
        assert not destination.exists()

    def test_collision_policy_from_config(self, temp_dir):
        for parent in ("one", "two"):
            root = temp_dir / parent / "pkg"
            root.mkdir(parents=True)
            (root / "x.txt").write_text(parent)
        roots = [temp_dir / "one" / "pkg", temp_dir / "two" / "pkg"]
        destination = temp_dir / "pkg.zip"

        code, _ = run(make_args("compress", roots, destination=str(destination)))
        assert code == ErrorCode.CONFLICT
        assert not destination.exists()

        code, _ = run(
            make_args("compress", roots, destination=str(destination)),
            {"archive": {"on_collision": "suffix"}},
        )
        assert code == 0
        with zipfile.ZipFile(destination) as zf:
            assert zf.namelist() == ["pkg/x.txt", "pkg/x (2).txt"]

    def test_bad_destination(self, simple_root, temp_dir):
        code, _ = run(make_args("compress", [simple_root], destination=str(temp_dir / "a.tar")))
        assert code == ErrorCode.INVALID_INPUT


class TestRunPathSieve:
    """Test the module-level entry point."""

    def test_run_pathsieve(self, simple_root, capsys):
        code = run_pathsieve(make_args("filter-files", [simple_root]), {}, runner_logger())

        assert code == 0
        assert capsys.readouterr().out.splitlines() == [
            str(simple_root / "a.txt"),
            str(simple_root / "sub" / "b.txt"),
        ]

    def test_keyboard_interrupt(self, simple_root):
        main = PathSieveMain(make_args("filter-files", [simple_root]), {}, runner_logger())

        with patch.object(main, "run_filter_files", side_effect=KeyboardInterrupt):
            assert main.run() == 130
