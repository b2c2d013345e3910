"""Clipboard processor: gather matched files and copy them in one go.

Files are collected while the dispatcher runs; :meth:`ClipboardProcessor.finish`
joins them and pipes the text to the first clipboard tool found on PATH.
"""

import os
import shutil
import subprocess
import sys
from typing import List, Optional

from pathsieve.core.constants import ErrorCode
from pathsieve.core.file_ops import FileHandle
from pathsieve.core.logging import get_logger
from pathsieve.transforms.base import Processor, ProcessorError
from pathsieve.transforms.display import render_file


def clipboard_commands() -> List[List[str]]:
    """Candidate clipboard commands for the current platform, in preference order."""
    if sys.platform == "darwin":
        return [["pbcopy"]]
    if os.name == "nt":
        return [["clip"]]
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def copy_text_to_clipboard(text: str, commands: Optional[List[List[str]]] = None) -> List[str]:
    """Copy text to the system clipboard.

    Args:
        text: Text to copy
        commands: Candidate commands (defaults to clipboard_commands())

    Returns:
        The command that succeeded

    Raises:
        ProcessorError: If no tool is available or every tool fails
    """
    candidates = commands if commands is not None else clipboard_commands()
    failures = []

    for command in candidates:
        if shutil.which(command[0]) is None:
            continue
        try:
            proc = subprocess.run(command, input=text, text=True, check=False)
        except OSError as e:
            failures.append(f"{command[0]}: {e}")
            continue
        if proc.returncode == 0:
            return command
        failures.append(f"{command[0]}: exit status {proc.returncode}")

    if not failures:
        tools = ", ".join(c[0] for c in candidates)
        raise ProcessorError(
            f"No clipboard tool found (tried: {tools})", "clipboard", ErrorCode.DEPENDENCY_ERROR
        )
    raise ProcessorError(f"Clipboard copy failed: {'; '.join(failures)}", "clipboard")


class ClipboardProcessor(Processor):
    """Collects header and content of each file, copies the lot on finish()."""

    def __init__(
        self,
        encoding: str = "utf-8",
        commands: Optional[List[List[str]]] = None,
        name: str = "clipboard",
    ):
        super().__init__(name=name)
        self._encoding = encoding
        self._commands = commands
        self._blocks: List[str] = []
        self._logger = get_logger("pathsieve.transforms")

    def process(self, handle: FileHandle, header: str) -> str:
        block = render_file(handle, header, self._encoding)
        self._blocks.append(block)
        return block

    @property
    def text(self) -> str:
        return "\n".join(self._blocks)

    def finish(self) -> Optional[str]:
        """Copy everything collected so far; nothing collected means no copy."""
        if not self._blocks:
            self._logger.warning("Nothing to copy to clipboard")
            return None

        text = self.text
        command = copy_text_to_clipboard(text, self._commands)
        self._logger.info(
            "Copied files to clipboard", files=len(self._blocks), chars=len(text), tool=command[0]
        )
        self._blocks = []
        return text
