"""Display processor: print each matched file under its header."""

import sys
from typing import Optional, TextIO

from pathsieve.core.file_ops import FileHandle, read_all_bytes
from pathsieve.transforms.base import Processor


def render_file(handle: FileHandle, header: str, encoding: str = "utf-8") -> str:
    """Header line, then the file decoded as text (undecodable bytes replaced)."""
    content = read_all_bytes(handle.path).decode(encoding, errors="replace")
    if content and not content.endswith("\n"):
        content += "\n"
    return f"{header}\n{content}"


class DisplayProcessor(Processor):
    """Writes header and content of every matched file to a stream."""

    def __init__(
        self, stream: Optional[TextIO] = None, encoding: str = "utf-8", name: str = "display"
    ):
        super().__init__(name=name)
        self._stream = stream
        self._encoding = encoding

    @property
    def stream(self) -> TextIO:
        # Resolved late so a replaced sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def process(self, handle: FileHandle, header: str) -> str:
        text = render_file(handle, header, self._encoding)
        self.stream.write(text + "\n")
        return text
