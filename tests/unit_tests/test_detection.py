"""This module provides unit tests for alphapsm.parsers.detection."""

import pytest
from conftest import MSGF_HEADER, inspect_line, write_lines

from alphapsm.exceptions import InputFileNotFoundError, UnknownSearchToolError
from alphapsm.parsers import PARSERS
from alphapsm.parsers.detection import detect_tool, get_parser_class
from alphapsm.parsers.moda import MODaParser
from alphapsm.parsers.msgfplus import MSGFPlusParser


def test_parsers_registered_by_tool_name():
    """Test every supported search tool has a parser."""
    assert set(PARSERS) == {"inspect", "msgfplus", "mspathfinder", "moda"}


@pytest.mark.parametrize(
    "search_tool,expected_parser",
    [("msgfplus", MSGFPlusParser), ("MSGFPlus", MSGFPlusParser), ("MODa", MODaParser)],
)
def test_get_parser_class(search_tool, expected_parser):
    """Test search tool names are case-insensitive."""
    assert get_parser_class(search_tool) is expected_parser


def test_get_parser_class_unknown():
    """Test unknown search tools raise."""
    with pytest.raises(UnknownSearchToolError) as exc_info:
        get_parser_class("xtandem")

    assert "Unknown search tool 'xtandem'" in str(exc_info.value)


@pytest.mark.parametrize(
    "file_name,expected_tool",
    [
        ("Dataset_inspect.txt", "inspect"),
        ("Dataset_msgfplus.tsv", "msgfplus"),
        ("Dataset_MSGFDB.txt", "msgfplus"),
        ("Dataset_IcTda.tsv", "mspathfinder"),
        ("Dataset_moda.id.txt", "moda"),
    ],
)
def test_detect_tool_from_file_name(tmp_path, file_name, expected_tool):
    """Test detection by the file name suffix."""
    path = write_lines(tmp_path / file_name, ["anything"])

    assert detect_tool(path) == expected_tool


@pytest.mark.parametrize(
    "first_line,expected_tool",
    [
        ("\t".join(MSGF_HEADER), "msgfplus"),
        (
            "Scan\tPre\tSequence\tPost\tModifications\tProteinName\tCharge\tSpecEValue",
            "mspathfinder",
        ),
        (
            "SpectrumFile\tIndex\tObservedMW\tCharge\tCalculatedMW\tScore\tProbability\tPeptide\tProtein",
            "moda",
        ),
        (inspect_line(1, "K.PEPTIDE.R"), "inspect"),
    ],
)
def test_detect_tool_from_first_line(tmp_path, first_line, expected_tool):
    """Test detection by the header, or the column count of InSpecT files without header."""
    path = write_lines(tmp_path / "results.txt", [first_line])

    assert detect_tool(path) == expected_tool


@pytest.mark.parametrize(
    "first_line", ["Scan\tPeptide\tScore", "1\t2\t3"]
)
def test_detect_tool_unknown(tmp_path, first_line):
    """Test files of unknown format raise."""
    path = write_lines(tmp_path / "results.txt", [first_line])

    with pytest.raises(UnknownSearchToolError):
        detect_tool(path)


def test_detect_tool_missing_file(tmp_path):
    """Test a missing file raises."""
    with pytest.raises(InputFileNotFoundError):
        detect_tool(str(tmp_path / "Dataset_msgfplus.tsv"))
