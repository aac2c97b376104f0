"""
Line source for the tab-separated author dump.

Streams the file one logical line at a time with a bounded read-ahead
buffer, so memory use does not depend on file size.
"""

import os
from pathlib import Path
from typing import Iterator

from author_import.core.errors import SourceFileNotFoundError
from author_import.core.models import RawLine

DEFAULT_BUFFER_SIZE = 256 * 1024


class LineSource:
    """
    Lazy, restartable sequence of RawLine objects.

    Each iteration reopens the file and starts from the first line. Universal
    newline mode folds "\\r\\n" and "\\r" into a single line boundary.
    Invalid UTF-8 sequences are replaced rather than aborting the run.
    """

    def __init__(self, file_path: str | Path, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Initialize line source.

        Args:
            file_path: Path to the dump file
            buffer_size: Read-ahead buffer in bytes

        Raises:
            SourceFileNotFoundError: If the path is not a readable file
        """
        self.path = Path(file_path).expanduser()
        self.buffer_size = buffer_size

        if not self.path.exists():
            raise SourceFileNotFoundError(str(self.path), "path does not exist")
        if not self.path.is_file():
            raise SourceFileNotFoundError(str(self.path), "path is not a regular file")
        if not os.access(self.path, os.R_OK):
            raise SourceFileNotFoundError(str(self.path), "file is not readable")

    @property
    def size_bytes(self) -> int:
        return self.path.stat().st_size

    def __iter__(self) -> Iterator[RawLine]:
        try:
            f = open(
                self.path,
                "r",
                encoding="utf-8",
                errors="replace",
                newline=None,
                buffering=self.buffer_size,
            )
        except OSError as e:
            raise SourceFileNotFoundError(str(self.path), str(e)) from e

        with f:
            for line_number, line in enumerate(f, 1):
                yield RawLine(line_number=line_number, text=line.rstrip("\n"))
