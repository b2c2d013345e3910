#!/usr/bin/env python3
"""Rename processor using Jinja2 name templates.

Each matched file is renamed in place (same directory) to the name rendered
from a template. Available variables:
- name: current file name ("IMG_0001.JPG")
- stem: name without the last suffix ("IMG_0001")
- suffix: last suffix including the dot (".JPG")
- parent: name of the containing directory
- index: 1-based position of the file in this run
- size: size in bytes
- mtime: modification time as a datetime

Example:
    >>> processor = RenameProcessor("{{ parent }}_{{ '%03d' | format(index) }}{{ suffix | lower }}")
    >>> processor.process(handle, header)
    '/photos/holiday/holiday_001.jpg'
"""

import os
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import jinja2

from pathsieve.core.constants import ErrorCode
from pathsieve.core.file_ops import FileHandle, FileOperationError, rename_file
from pathsieve.core.logging import get_logger
from pathsieve.transforms.base import Processor, ProcessorError


class RenameProcessor(Processor):
    """Renames matched files according to a Jinja2 template.

    Renaming changes the filesystem, so the dispatcher checks its
    preview-only/confirm gate before every call.
    """

    mutating = True

    def __init__(self, template: str, name: str = "rename", **jinja_options: Any):
        """Initialize rename processor.

        Args:
            template: Jinja2 template producing the new file name
            name: Processor name
            **jinja_options: Additional Jinja2 environment options

        Raises:
            ProcessorError: If the template is empty or does not parse
        """
        super().__init__(name=name)
        if not template or not template.strip():
            raise ProcessorError("Rename template cannot be empty", name, ErrorCode.INVALID_INPUT)

        options = {"undefined": jinja2.StrictUndefined, "autoescape": False}
        options.update(jinja_options)
        self._env = jinja2.Environment(**options)

        try:
            self._template = self._env.from_string(template)
        except jinja2.TemplateSyntaxError as e:
            raise ProcessorError(
                f"Invalid rename template {template!r}: {e}", name, ErrorCode.INVALID_INPUT
            )

        self.template_source = template
        self._index = 0
        # Name rendered by describe(), reused by the process() call that follows
        self._pending: Optional[Tuple[str, str]] = None
        self._logger = get_logger("pathsieve.transforms")

    def build_context(self, handle: FileHandle, index: int) -> Dict[str, Any]:
        """Template variables for one file."""
        stem, suffix = os.path.splitext(handle.name)
        return {
            "name": handle.name,
            "stem": stem,
            "suffix": suffix,
            "parent": os.path.basename(os.path.dirname(handle.path)),
            "index": index,
            "size": handle.size,
            "mtime": datetime.fromtimestamp(handle.mtime),
        }

    def render_name(self, handle: FileHandle, index: Optional[int] = None) -> str:
        """Render and check the new file name.

        Args:
            handle: File to rename
            index: Position to expose as ``index`` (defaults to the next one)

        Returns:
            New bare file name

        Raises:
            ProcessorError: If rendering fails or yields an unusable name
        """
        if index is None:
            self._index += 1
            index = self._index

        try:
            new_name = self._template.render(**self.build_context(handle, index)).strip()
        except jinja2.TemplateError as e:
            raise ProcessorError(f"Cannot render name for {handle.path}: {e}", self.name)

        if not new_name or new_name in (".", ".."):
            raise ProcessorError(
                f"Template produced an empty name for {handle.path}",
                self.name,
                ErrorCode.INVALID_INPUT,
            )

        if "/" in new_name or "\\" in new_name or "\0" in new_name:
            raise ProcessorError(
                f"Template produced a path, not a file name: {new_name!r}",
                self.name,
                ErrorCode.INVALID_INPUT,
            )

        return new_name

    def describe(self, handle: FileHandle) -> str:
        new_name = self.render_name(handle)
        self._pending = (handle.path, new_name)
        return f"rename {handle.path} -> {new_name}"

    def process(self, handle: FileHandle, header: str) -> str:
        if self._pending is not None and self._pending[0] == handle.path:
            new_name = self._pending[1]
        else:
            new_name = self.render_name(handle)
        self._pending = None

        if new_name == handle.name:
            self._logger.debug("Name unchanged", path=handle.path)
            return handle.path

        target = os.path.join(os.path.dirname(handle.path), new_name)
        try:
            rename_file(handle.path, target)
        except FileOperationError as e:
            raise ProcessorError(e.message, self.name, e.error_code)

        self._logger.info(f"Renamed {handle.name} -> {new_name}", directory=os.path.dirname(target))
        return target
