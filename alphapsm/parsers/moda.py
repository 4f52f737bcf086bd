"""Parser for MODa `_moda.id.txt` result files.

MODa reports modifications as integer mass differences after the residue, e.g. `K.AM+16PEPTIDE.R`.
Static modifications are implied and never written.
"""

import logging

from alphapsm.constants.keys import OutputCols, SearchTools
from alphapsm.exceptions import MalformedInputLineError
from alphapsm.mass import neutral_mass_to_mz
from alphapsm.masserror import corrected_mass_error
from alphapsm.parsers.base import ResultParser, SearchResult
from alphapsm.ranking import RankingScheme, ScoreKey

logger = logging.getLogger()

# difference between the masses of MODa and alphapsm that is reported
MASS_MISMATCH_TOLERANCE = 0.1

_PASS_THROUGH_COLUMNS = ("Score", "Probability", "PeptidePosition")


class MODaParser(ResultParser):
    tool_name = SearchTools.MODA
    file_suffixes = ("_moda.id.txt", "_moda.txt")

    columns = (
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
        "ScanNum",
    )
    column_aliases = {"spectrumfilename": "SpectrumFile", "scan": "ScanNum"}
    required_columns = ("Index", "ObservedMW", "Charge", "Peptide", "Probability")

    ranking = RankingScheme(
        primary=ScoreKey("Probability"),
        secondary=ScoreKey("Score"),
        rank_column="Rank_Probability",
        delta_norm_column="DeltaNormProbability",
    )

    output_columns = (
        OutputCols.RESULT_ID,
        OutputCols.SCAN,
        "Spectrum_Index",
        OutputCols.PEPTIDE,
        OutputCols.PROTEIN,
        OutputCols.CHARGE,
        "PrecursorMZ",
        OutputCols.DEL_M,
        OutputCols.MH,
        "Score",
        "Probability",
        "Rank_Probability",
        "DeltaNormProbability",
        "Peptide_Position",
        OutputCols.NTT,
        OutputCols.ISOTOPE_ERROR,
        OutputCols.DEL_M_PPM,
    )
    float_precision = {
        "PrecursorMZ": 6,
        "DeltaNormProbability": 5,
        OutputCols.MH: 6,
        OutputCols.DEL_M_PPM: 4,
    }

    # MODa writes the results ordered by probability
    requires_scan_sort = True

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.n_mass_mismatches = 0

    def _parse_fields(self, fields: list[str], line_number: int) -> SearchResult:
        spectrum_index = self._get_int(fields, "Index", line_number)
        # MODa only reports the spectrum index, some converted files carry the scan number as well
        if self._get(fields, "ScanNum"):
            scan = self._get_int(fields, "ScanNum", line_number)
        else:
            scan = spectrum_index

        charge = self._get_int(fields, "Charge", line_number)
        if charge < 1:
            raise MalformedInputLineError(f"invalid charge {charge}", line_number)

        observed_mass = self._get_float(fields, "ObservedMW", line_number)
        peptide = self.normalize_annotation(self._get(fields, "Peptide"), line_number)

        probability = self._get(fields, "Probability")
        if probability.lower() == "infinity":
            probability = "0"

        scores = {
            "Probability": self._parse_probability(probability, line_number),
            "Score": self._get_float(fields, "Score", line_number, required=False),
        }
        values = self._get_values(fields, _PASS_THROUGH_COLUMNS)
        values.update(
            {
                "Probability": probability,
                "Spectrum_Index": spectrum_index,
                "Peptide_Position": values.pop("PeptidePosition"),
                "PrecursorMZ": neutral_mass_to_mz(observed_mass, charge),
            }
        )

        result = self._create_result(
            scan=scan,
            charge=charge,
            peptide=peptide,
            protein=self._get(fields, "Protein"),
            line_number=line_number,
            scores=scores,
            values=values,
        )

        theoretical_mass = self._get_float(
            fields, "CalculatedMW", line_number, required=False
        )
        if not theoretical_mass > 0:
            theoretical_mass = result.monoisotopic_mass
        elif abs(theoretical_mass - result.monoisotopic_mass) > MASS_MISMATCH_TOLERANCE:
            self.n_mass_mismatches += 1
            logger.debug(
                f"Line {line_number}: mass of {result.peptide} is {result.monoisotopic_mass:.4f}, "
                f"MODa reports {theoretical_mass:.4f}"
            )

        result.mass_error = corrected_mass_error(observed_mass, theoretical_mass)
        return result

    def report(self) -> None:
        if self.n_mass_mismatches:
            logger.warning(
                f"{self.n_mass_mismatches} result(s) with a CalculatedMW that differs by more than "
                f"{MASS_MISMATCH_TOLERANCE} Da from the computed peptide mass"
            )

    @staticmethod
    def _parse_probability(probability: str, line_number: int) -> float:
        try:
            return float(probability)
        except ValueError:
            raise MalformedInputLineError(
                f"column 'Probability' is not numeric: '{probability}'", line_number
            ) from None
