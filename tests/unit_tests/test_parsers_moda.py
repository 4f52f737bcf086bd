"""This module provides unit tests for alphapsm.parsers.moda."""

from unittest.mock import patch

import pytest
from conftest import OXIDATION

from alphapsm.mass import compute_sequence_mass, neutral_mass_to_mz
from alphapsm.parsers.base import SearchResult
from alphapsm.parsers.moda import MODaParser

MODA_HEADER = [
    "SpectrumFile",
    "Index",
    "ObservedMW",
    "Charge",
    "CalculatedMW",
    "DeltaMass",
    "Score",
    "Probability",
    "Peptide",
    "Protein",
    "PeptidePosition",
]

PEPTIDE_MASS = compute_sequence_mass("AMPEPTIDE") + OXIDATION.mass


def _line(
    index: int = 17,
    observed_mass: float = PEPTIDE_MASS + 0.002,
    calculated_mass: float = PEPTIDE_MASS,
    probability: str = "0.95",
    peptide: str = "K.AM+16PEPTIDE.R",
) -> str:
    fields = [
        "Dataset.mgf",
        index,
        observed_mass,
        2,
        calculated_mass,
        observed_mass - calculated_mass,
        20,
        probability,
        peptide,
        "Prot1",
        "10~18",
    ]
    return "\t".join(str(field) for field in fields)


@pytest.fixture
def parser(registry):
    parser = MODaParser(registry=registry)
    parser.parse_line("\t".join(MODA_HEADER), 1)
    return parser


def test_parse_line(parser):
    """Test a result line with an integer modification mass."""
    # when
    result = parser.parse_line(_line(), 2)

    # then
    assert isinstance(result, SearchResult)
    assert result.scan == 17
    assert result.peptide == "K.AM*PEPTIDE.R"
    assert result.scores["Probability"] == 0.95
    assert result.scores["Score"] == 20.0
    assert result.values["Spectrum_Index"] == 17
    assert result.values["Peptide_Position"] == "10~18"
    assert result.values["PrecursorMZ"] == pytest.approx(
        neutral_mass_to_mz(PEPTIDE_MASS + 0.002, 2)
    )
    assert result.mass_error.error_da == pytest.approx(0.002)
    assert result.mass_error.isotope_error == 0
    assert parser.n_mass_mismatches == 0


def test_parse_line_scan_column(registry):
    """Test the scan number column is preferred over the spectrum index."""
    # given
    parser = MODaParser(registry=registry)
    parser.parse_line("\t".join(MODA_HEADER + ["ScanNum"]), 1)

    # when
    result = parser.parse_line(_line() + "\t4242", 2)

    # then
    assert result.scan == 4242
    assert result.values["Spectrum_Index"] == 17


def test_parse_line_infinite_probability(parser):
    """Test an infinite probability is treated as 0."""
    result = parser.parse_line(_line(probability="Infinity"), 2)

    assert result.scores["Probability"] == 0.0
    assert result.values["Probability"] == "0"


def test_parse_line_mass_mismatch(parser):
    """Test differences between the reported and the computed mass are counted."""
    # when
    result = parser.parse_line(_line(calculated_mass=PEPTIDE_MASS + 1.0), 2)

    # then
    assert parser.n_mass_mismatches == 1
    assert result.monoisotopic_mass == pytest.approx(PEPTIDE_MASS)


def test_parse_line_without_calculated_mass(parser):
    """Test the computed mass is used if MODa does not report one."""
    result = parser.parse_line(_line(calculated_mass=0.0), 2)

    assert result.mass_error.error_da == pytest.approx(0.002)


@patch("alphapsm.parsers.moda.logger")
def test_report_mass_mismatches(mock_logger, parser):
    """Test the number of mass mismatches is logged once after parsing."""
    # given
    parser.parse_line(_line(calculated_mass=PEPTIDE_MASS + 1.0), 2)
    parser.parse_line(_line(index=18, calculated_mass=PEPTIDE_MASS + 2.0), 3)

    # when
    parser.report()

    # then
    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args.args[0].startswith("2 result(s)")


@patch("alphapsm.parsers.moda.logger")
def test_report_without_mass_mismatches(mock_logger, parser):
    """Test nothing is logged if all masses agree."""
    parser.parse_line(_line(), 2)

    parser.report()

    mock_logger.warning.assert_not_called()
