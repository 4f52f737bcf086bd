"""Tab separated writer for first hits and synopsis files."""

import logging
import math
import os

from alphapsm.exceptions import OutputWriteFailureError

logger = logging.getLogger()

DEFAULT_FLOAT_PRECISION = 5


def format_value(value, digits: int = DEFAULT_FLOAT_PRECISION) -> str:
    """Format a value for the output file.

    Floats are rounded to `digits` decimal places and trailing zeros are removed, missing values are empty.
    Strings are written unchanged.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        text = f"{value:.{digits}f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return "0" if text == "-0" else text
    return str(value)


class CanonicalWriter:
    """Writes rows as tab separated text with a fixed header.

    The writer numbers the rows it writes, starting at 1, and passes the number to `row_factory`.
    Use it as a context manager, which writes the header on enter.

    Parameters
    ----------
    path : str
        Output file path, an existing file is overwritten.

    columns : list of str
        Header of the file, values are written in this order.

    row_factory : callable
        Called with a record and its result id, returns a dict of column name to value.
        Columns missing from the dict are written empty.

    float_precision : dict, optional
        Number of decimal places per column, `DEFAULT_FLOAT_PRECISION` for other float columns.

    """

    def __init__(self, path: str, columns, row_factory, float_precision: dict | None = None):
        self.path = path
        self.columns = list(columns)
        self.row_factory = row_factory
        self.float_precision = float_precision or {}

        self.n_written = 0
        self._file = None

    def __enter__(self):
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)
            self._file = open(self.path, "w", encoding="utf-8")
            self._write_line(self.columns)
        except OSError as e:
            self.close()
            raise OutputWriteFailureError(f"{self.path}: {e}") from e
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        logger.info(f"Wrote {self.n_written} rows to {self.path}")

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def _write_line(self, values: list[str]) -> None:
        self._file.write("\t".join(values) + "\n")

    def write(self, records) -> int:
        """Write records, returning the number of rows written."""
        n_written_before = self.n_written
        try:
            for record in records:
                self.n_written += 1
                row = self.row_factory(record, self.n_written)
                self._write_line(
                    [
                        format_value(
                            row.get(column),
                            self.float_precision.get(column, DEFAULT_FLOAT_PRECISION),
                        )
                        for column in self.columns
                    ]
                )
        except OSError as e:
            raise OutputWriteFailureError(f"{self.path}: {e}") from e

        return self.n_written - n_written_before
