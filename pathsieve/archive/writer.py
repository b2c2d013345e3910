"""Zip archive writer.

Thin wrapper over :mod:`zipfile` giving the archive builder a small
open / write_entry / close surface.
"""

import time
import zipfile
from typing import List, Optional, Tuple, Union

from pathsieve.core.constants import ArchiveCompression
from pathsieve.core.validators import validate_compression

COMPRESSION_METHODS = {
    ArchiveCompression.STORED: zipfile.ZIP_STORED,
    ArchiveCompression.DEFLATED: zipfile.ZIP_DEFLATED,
    ArchiveCompression.BZIP2: zipfile.ZIP_BZIP2,
    ArchiveCompression.LZMA: zipfile.ZIP_LZMA,
}

# Earliest timestamp a zip entry can carry
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


def zip_date_time(mtime: float) -> Tuple[int, int, int, int, int, int]:
    """Convert an epoch timestamp to a zip entry date_time tuple."""
    date_time = tuple(time.localtime(mtime)[:6])
    if date_time < ZIP_EPOCH:
        return ZIP_EPOCH
    return date_time


class ZipArchiveWriter:
    """Writes named byte entries into one zip file.

    Usage:
        >>> with ZipArchiveWriter("out.zip") as writer:
        ...     writer.write_entry("docs/readme.txt", b"hello")
    """

    def __init__(
        self,
        path: str,
        mode: str = "a",
        compression: Union[str, ArchiveCompression] = ArchiveCompression.DEFLATED,
    ):
        """Initialize writer.

        Args:
            path: Archive file path
            mode: zipfile mode; "a" updates an archive, creating it if absent
            compression: Compression method name
        """
        if mode not in ("a", "w", "x"):
            raise ValueError(f"Unsupported archive mode: {mode}")
        self.path = path
        self.mode = mode
        self.compression = validate_compression(compression)
        self._zip: Optional[zipfile.ZipFile] = None

    @property
    def is_open(self) -> bool:
        return self._zip is not None

    def open(self) -> "ZipArchiveWriter":
        """Open (or create) the archive.

        Raises:
            OSError: If the file cannot be opened
            zipfile.BadZipFile: If an existing file is not a zip archive
        """
        if self._zip is None:
            self._zip = zipfile.ZipFile(
                self.path, self.mode, compression=COMPRESSION_METHODS[self.compression]
            )
        return self

    def write_entry(self, name: str, data: bytes, mtime: Optional[float] = None) -> None:
        """Store data under an entry name.

        Args:
            name: Archive-internal name ('/' separated)
            data: Entry content
            mtime: Modification time to record (defaults to now)
        """
        if self._zip is None:
            raise ValueError("Archive is not open")

        timestamp = time.time() if mtime is None else mtime
        info = zipfile.ZipInfo(name, date_time=zip_date_time(timestamp))
        info.compress_type = COMPRESSION_METHODS[self.compression]
        # rw-r--r-- regular file
        info.external_attr = 0o100644 << 16
        self._zip.writestr(info, data)

    def entry_names(self) -> List[str]:
        if self._zip is None:
            raise ValueError("Archive is not open")
        return self._zip.namelist()

    def close(self) -> None:
        """Flush and release the archive; safe to call twice."""
        if self._zip is not None:
            try:
                self._zip.close()
            finally:
                self._zip = None

    def __enter__(self) -> "ZipArchiveWriter":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
