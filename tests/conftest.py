"""Shared pytest fixtures for PathSieve tests."""
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import yaml

from pathsieve.core.logging import reset_loggers


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_dir(temp_dir: Path) -> Path:
    """Create a source directory with test files.

    Layout::

        source/
            file.txt
            README.md
            script.py
            .hidden
            subdir/nested.txt
            docs/api.md
            build/output.o
    """
    source = temp_dir / "source"
    source.mkdir()

    # Create test file structure
    (source / "file.txt").write_text("Hello World")
    (source / "README.md").write_text("# Test README\n\nTest content")
    (source / "script.py").write_text("#!/usr/bin/env python\nprint('test')")

    # Create subdirectories
    (source / "subdir").mkdir()
    (source / "subdir" / "nested.txt").write_text("Nested content")

    (source / "docs").mkdir()
    (source / "docs" / "api.md").write_text("# API Documentation")

    # Create files for testing filters
    (source / ".hidden").write_text("Hidden file")
    (source / "build").mkdir()
    (source / "build" / "output.o").write_text("Binary content")

    return source


@pytest.fixture
def simple_root(temp_dir: Path) -> Path:
    """Root with a.txt and sub/b.txt."""
    root = temp_dir / "proj"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_text("alpha")
    (root / "sub" / "b.txt").write_text("beta")
    return root


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample PathSieve configuration."""
    return {
        "filters": {
            "case_sensitive": False,
            "include": [r"\.txt$", r"\.md$"],
            "exclude": [r"^build/"],
        },
        "traversal": {
            "prune_directories": True,
            "follow_symlinks": False,
        },
        "archive": {
            "compression": "stored",
            "on_collision": "suffix",
        },
        "processors": {
            "plugins": [],
        },
        "logging": {
            "level": "DEBUG",
            "file": None,
        },
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "pathsieve.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch):
    """Reset cached loggers and PATHSIEVE_* variables between tests."""
    for key in list(os.environ):
        if key.startswith("PATHSIEVE_"):
            monkeypatch.delenv(key)
    reset_loggers()
    yield
    reset_loggers()
