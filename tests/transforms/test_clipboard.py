"""Tests for the clipboard processor."""

import subprocess
from unittest.mock import patch

import pytest

from pathsieve.core.constants import ErrorCode
from pathsieve.core.file_ops import FileHandle
from pathsieve.transforms.base import ProcessorError
from pathsieve.transforms.clipboard import (
    ClipboardProcessor,
    clipboard_commands,
    copy_text_to_clipboard,
)
from pathsieve.transforms.dispatcher import TransformDispatcher


def completed(returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode)


class TestClipboardCommands:
    """Tests for platform command selection."""

    def test_macos(self):
        with patch("pathsieve.transforms.clipboard.sys.platform", "darwin"):
            assert clipboard_commands() == [["pbcopy"]]

    def test_linux(self):
        with patch("pathsieve.transforms.clipboard.sys.platform", "linux"), patch(
            "pathsieve.transforms.clipboard.os.name", "posix"
        ):
            commands = clipboard_commands()
        assert commands[0] == ["wl-copy"]
        assert ["xclip", "-selection", "clipboard"] in commands


class TestCopyTextToClipboard:
    """Tests for copy_text_to_clipboard."""

    def test_first_available_tool_used(self):
        with patch("pathsieve.transforms.clipboard.shutil.which", side_effect=lambda c: c == "xclip"), patch(
            "pathsieve.transforms.clipboard.subprocess.run", return_value=completed()
        ) as mock_run:
            command = copy_text_to_clipboard("hello", [["wl-copy"], ["xclip", "-selection", "clipboard"]])

        assert command == ["xclip", "-selection", "clipboard"]
        mock_run.assert_called_once_with(
            ["xclip", "-selection", "clipboard"], input="hello", text=True, check=False
        )

    def test_falls_back_when_tool_fails(self):
        with patch("pathsieve.transforms.clipboard.shutil.which", return_value="/usr/bin/x"), patch(
            "pathsieve.transforms.clipboard.subprocess.run", side_effect=[completed(1), completed(0)]
        ):
            command = copy_text_to_clipboard("hello", [["wl-copy"], ["xsel", "--clipboard", "--input"]])
        assert command[0] == "xsel"

    def test_no_tool_available(self):
        with patch("pathsieve.transforms.clipboard.shutil.which", return_value=None):
            with pytest.raises(ProcessorError) as exc_info:
                copy_text_to_clipboard("hello", [["pbcopy"]])
        assert exc_info.value.error_code == ErrorCode.DEPENDENCY_ERROR
        assert "pbcopy" in exc_info.value.message

    def test_every_tool_fails(self):
        with patch("pathsieve.transforms.clipboard.shutil.which", return_value="/usr/bin/x"), patch(
            "pathsieve.transforms.clipboard.subprocess.run", side_effect=OSError("exec format error")
        ):
            with pytest.raises(ProcessorError) as exc_info:
                copy_text_to_clipboard("hello", [["wl-copy"]])
        assert exc_info.value.error_code == ErrorCode.INTERNAL_ERROR
        assert "exec format error" in exc_info.value.message


class TestClipboardProcessor:
    """Tests for ClipboardProcessor."""

    def test_collects_and_copies_once(self, simple_root):
        processor = ClipboardProcessor(commands=[["pbcopy"]])

        with patch("pathsieve.transforms.clipboard.shutil.which", return_value="/usr/bin/pbcopy"), patch(
            "pathsieve.transforms.clipboard.subprocess.run", return_value=completed()
        ) as mock_run:
            TransformDispatcher(processor).run(str(simple_root))

        mock_run.assert_called_once()
        copied = mock_run.call_args.kwargs["input"]
        assert copied == (
            f"File: {simple_root / 'a.txt'}\nalpha\n\n"
            f"File: {simple_root / 'sub' / 'b.txt'}\nbeta\n"
        )

    def test_nothing_collected_means_no_copy(self, simple_root, caplog):
        processor = ClipboardProcessor(commands=[["pbcopy"]])

        with patch("pathsieve.transforms.clipboard.subprocess.run") as mock_run:
            result = TransformDispatcher(processor, include=[r"\.nothing$"]).run(str(simple_root))

        assert result == []
        mock_run.assert_not_called()
        assert "Nothing to copy" in caplog.text

    def test_finish_clears_buffer(self, simple_root):
        processor = ClipboardProcessor(commands=[["pbcopy"]])
        handle = FileHandle.from_path(str(simple_root / "a.txt"), str(simple_root))
        processor.process(handle, "File: A")

        with patch("pathsieve.transforms.clipboard.shutil.which", return_value="/usr/bin/pbcopy"), patch(
            "pathsieve.transforms.clipboard.subprocess.run", return_value=completed()
        ):
            assert processor.finish() == "File: A\nalpha\n"

        assert processor.text == ""

    def test_copy_failure_propagates(self, simple_root):
        processor = ClipboardProcessor(commands=[["pbcopy"]])

        with patch("pathsieve.transforms.clipboard.shutil.which", return_value=None):
            with pytest.raises(ProcessorError):
                TransformDispatcher(processor).run(str(simple_root))
