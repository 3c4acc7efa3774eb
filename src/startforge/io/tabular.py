"""Tab-separated table reading.

Both prediction streams consumed by startforge (the start/stop predictor
output and the scored start candidates) are tab-separated tables with a
header row. The reader here locates columns by name and keeps each raw
line, so consumers can echo input rows unchanged.

Example:
    >>> from startforge.io.tabular import TabularReader
    >>> with TabularReader("genome.stops.tbl") as reader:
    ...     loc_col = reader.find_field("location")
    ...     for line in reader:
    ...         print(line.get(loc_col))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, Any, Iterator

from startforge.utils.locations import PredictionFormatError

logger = logging.getLogger(__name__)

DELIMITER = "\t"


class TabularLine:
    """One data line of a tab-separated table.

    Attributes:
        fields: Column values.
        line_number: Line number in the source (1-based, header is 1).
    """

    __slots__ = ("fields", "line_number", "_raw")

    def __init__(self, raw: str, line_number: int) -> None:
        self._raw = raw
        self.fields = raw.split(DELIMITER)
        self.line_number = line_number

    def get(self, column: int) -> str:
        """Return a column value, or an empty string past the line end."""
        if column < len(self.fields):
            return self.fields[column]
        return ""

    def get_float(self, column: int) -> float:
        """Return a column value as a float.

        Raises:
            PredictionFormatError: If the value is not numeric.
        """
        value = self.get(column)
        try:
            return float(value)
        except ValueError as e:
            raise PredictionFormatError(
                f"Line {self.line_number}: expected a number in column {column + 1}, "
                f"got {value!r}"
            ) from e

    def get_int(self, column: int) -> int:
        """Return a column value as an integer.

        Raises:
            PredictionFormatError: If the value is not an integer.
        """
        value = self.get(column)
        try:
            return int(value)
        except ValueError as e:
            raise PredictionFormatError(
                f"Line {self.line_number}: expected an integer in column {column + 1}, "
                f"got {value!r}"
            ) from e

    @property
    def raw(self) -> str:
        """The original line text, without the line terminator."""
        return self._raw

    def __len__(self) -> int:
        return len(self.fields)


class TabularReader:
    """Header-aware reader for tab-separated tables.

    Accepts a path or an open text handle. Blank lines are skipped.

    Attributes:
        header: Header column names.
        header_line: Raw header text.
    """

    def __init__(self, source: Path | str | IO[str]) -> None:
        """Open the table and read its header.

        Args:
            source: Path to the table, or an open text handle.

        Raises:
            FileNotFoundError: If the path doesn't exist.
            PredictionFormatError: If the table has no header line.
        """
        if isinstance(source, (str, Path)):
            self.path: Path | None = Path(source)
            if not self.path.exists():
                raise FileNotFoundError(f"Table file not found: {self.path}")
            self._handle: IO[str] = open(self.path)
            self._owns_handle = True
        else:
            self.path = None
            self._handle = source
            self._owns_handle = False

        self._line_number = 0
        header = self._handle.readline()
        if not header:
            self.close()
            raise PredictionFormatError(f"Table has no header line: {self.name}")
        self._line_number = 1
        self.header_line = header.rstrip("\r\n")
        self.header = self.header_line.split(DELIMITER)

    @property
    def name(self) -> str:
        """Name of the source for messages."""
        if self.path is not None:
            return str(self.path)
        return getattr(self._handle, "name", "<stream>")

    def find_field(self, name: str) -> int:
        """Return the index of a named column.

        Raises:
            PredictionFormatError: If the column is missing.
        """
        try:
            return self.header.index(name)
        except ValueError:
            raise PredictionFormatError(
                f"Column '{name}' not found in {self.name}. "
                f"Available: {', '.join(self.header)}"
            ) from None

    def __iter__(self) -> Iterator[TabularLine]:
        for text in self._handle:
            self._line_number += 1
            text = text.rstrip("\r\n")
            if not text.strip():
                continue
            yield TabularLine(text, self._line_number)

    def close(self) -> None:
        """Close the underlying file if this reader opened it."""
        if self._owns_handle and not self._handle.closed:
            self._handle.close()

    def __enter__(self) -> TabularReader:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
