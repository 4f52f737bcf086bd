"""This module provides unit tests for alphapsm.writer."""

import pytest

from alphapsm.exceptions import OutputWriteFailureError
from alphapsm.writer import CanonicalWriter, format_value


@pytest.mark.parametrize(
    "value,digits,expected",
    [
        (None, 5, ""),
        (float("nan"), 5, ""),
        (1.234, 5, "1.234"),
        (2.0, 5, "2"),
        (0.123456789, 5, "0.12346"),
        (-0.000001, 4, "0"),
        (1500.0, 2, "1500"),
        (True, 5, "1"),
        (3, 5, "3"),
        ("K.PEPT*IDE.R", 5, "K.PEPT*IDE.R"),
        ("1.50000", 5, "1.50000"),
    ],
)
def test_format_value(value, digits, expected):
    """Test formatting of output values, strings are written unchanged."""
    assert format_value(value, digits) == expected


def test_canonical_writer(tmp_path):
    """Test header, result ids, column order and float precision of the written file."""
    # given
    path = tmp_path / "out" / "Dataset_msgfplus_fht.txt"
    records = [("K.PEPTIDE.R", 1.23456789), ("K.TIDE.R", None)]

    def row_factory(record, result_id):
        return {"ResultID": result_id, "Peptide": record[0], "MH": record[1]}

    # when
    with CanonicalWriter(
        str(path), ["ResultID", "Peptide", "Missing", "MH"], row_factory, {"MH": 3}
    ) as writer:
        n_written = writer.write(records)

    # then
    assert n_written == 2
    assert writer.n_written == 2
    assert path.read_text() == (
        "ResultID\tPeptide\tMissing\tMH\n"
        "1\tK.PEPTIDE.R\t\t1.235\n"
        "2\tK.TIDE.R\t\t\n"
    )


def test_canonical_writer_result_ids_continue(tmp_path):
    """Test result ids continue across calls to write."""
    # given
    path = tmp_path / "out.txt"

    # when
    with CanonicalWriter(
        str(path), ["ResultID"], lambda record, result_id: {"ResultID": result_id}
    ) as writer:
        writer.write(["a"])
        writer.write(["b", "c"])

    # then
    assert path.read_text().splitlines() == ["ResultID", "1", "2", "3"]


def test_canonical_writer_failure(tmp_path):
    """Test a path that can not be written raises an output write failure."""
    with pytest.raises(OutputWriteFailureError):
        with CanonicalWriter(str(tmp_path), ["ResultID"], lambda r, i: {}):
            pass
