"""This module provides unit tests for alphapsm.parsers.msgfplus."""

import pytest
from conftest import MSGF_HEADER, msgf_line

from alphapsm.mass import MASS_C13_C12, compute_sequence_mass, neutral_mass_to_mz
from alphapsm.parsers.base import HeaderLine, SearchResult
from alphapsm.parsers.msgfplus import MSGFPlusParser


@pytest.fixture
def parser(registry):
    parser = MSGFPlusParser(registry=registry)
    assert isinstance(parser.parse_line("\t".join(MSGF_HEADER), 1), HeaderLine)
    return parser


def test_parse_line(parser):
    """Test a result line with a modification mass and flanking residues in the protein name."""
    # when
    result = parser.parse_line(msgf_line(1234, "K.M+15.995PEPTIDE.R", charge=3), 2)

    # then
    assert isinstance(result, SearchResult)
    assert result.scan == 1234
    assert result.charge == 3
    assert result.peptide == "K.M*PEPTIDE.R"
    assert result.protein == "Prot1"
    assert result.scores["SpecEValue"] == 1e-12
    assert result.scores["MSGFScore"] == 100.0
    assert result.values["FragMethod"] == "HCD"
    assert result.values["PrecursorMZ"] == "500.0"
    assert result.values["PrecursorError"] == "1.5"
    assert result.ntt == 1


def test_parse_line_protein_terminus(parser):
    """Test MS-GF+ protein terminus markers are replaced."""
    result = parser.parse_line(msgf_line(1, "_.PEPTIDE._"), 2)

    assert result.peptide == "-.PEPTIDE.-"
    assert result.ntt == 2


def test_parse_line_scan_from_spec_id(parser):
    """Test the scan is taken from the spectrum id for spectra without scan number."""
    line = msgf_line(-1, "K.PEPTIDE.R").replace("scan=-1", "index=17")

    result = parser.parse_line(line, 2)

    assert result.scan == 17


def test_parse_line_isotope_error(parser):
    """Test the mass error of a precursor picked at the second isotope."""
    # given
    mass = compute_sequence_mass("PEPTIDEK")
    precursor_mz = neutral_mass_to_mz(mass + MASS_C13_C12 + 0.001, 2)

    # when
    result = parser.parse_line(msgf_line(1, "K.PEPTIDEK.A", precursor_mz=precursor_mz), 2)

    # then
    assert result.mass_error.isotope_error == 1
    assert result.mass_error.error_da == pytest.approx(0.001)
    assert result.mass_error.error_ppm == pytest.approx(0.001 / mass * 1e6)


def test_parse_line_missing_optional_scores(parser):
    """Test missing q-values do not make the line malformed."""
    fields = msgf_line(1, "K.PEPTIDE.R").split("\t")
    line = "\t".join(fields[:-2] + ["", ""])

    result = parser.parse_line(line, 2)

    assert isinstance(result, SearchResult)
    assert result.values["QValue"] == ""


def test_read_header_missing_required_column(registry):
    """Test missing required columns are recorded in the error log."""
    # given
    parser = MSGFPlusParser(registry=registry)
    header = [column for column in MSGF_HEADER if column != "MSGFScore"]

    # when
    parser.parse_line("\t".join(header), 1)

    # then
    assert str(parser.error_log) == (
        "Required column 'MSGFScore' not found in the header of the msgfplus file"
    )


def test_read_header_column_order_and_aliases(registry):
    """Test columns are located by header name, including the names of MSGFDB."""
    # given
    parser = MSGFPlusParser(registry=registry)
    header = [
        "#SpecFile",
        "Scan#",
        "Charge",
        "Peptide",
        "Protein",
        "MSGFScore",
        "SpecProb",
        "P-value",
        "DeNovoScore",
        "Precursor",
    ]
    line = ["Dataset.mzXML", "55", "2", "R.PEPTIDE.-", "Prot2", "80", "1e-10", "1e-5", "90", "400.2"]

    # when
    parser.parse_line("\t".join(header), 1)
    result = parser.parse_line("\t".join(line), 2)

    # then
    assert result.scan == 55
    assert result.protein == "Prot2"
    assert result.scores["SpecEValue"] == 1e-10
    assert result.scores["EValue"] == 1e-5
    assert result.values["PrecursorMZ"] == "400.2"


def test_matches_header():
    """Test header detection by the required columns."""
    assert MSGFPlusParser.matches_header(MSGF_HEADER)
    assert not MSGFPlusParser.matches_header(MSGF_HEADER[:5])
