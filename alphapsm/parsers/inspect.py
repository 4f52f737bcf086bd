"""Parser for InSpecT result files.

InSpecT writes 22 tab separated columns in a fixed order, optionally preceded by a header line.
Modifications are written as the first four letters of their name (e.g. `phos`) or as integer masses,
protein termini are marked by `*`.
"""

import math
import re

from alphabase.constants.atom import MASS_PROTON

from alphapsm.constants.keys import OutputCols, SearchTools
from alphapsm.exceptions import MalformedInputLineError
from alphapsm.masserror import corrected_error
from alphapsm.modification.params import (
    INSPECT_NAME_LENGTH,
    SearchModification,
    read_inspect_parameter_file,
)
from alphapsm.parsers.base import ResultParser, SearchResult
from alphapsm.ranking import AuxiliaryScore, RankingScheme, ScoreKey

# scan number of InSpecT searches of concatenated DTA files, e.g. "Sample.1234.1234.2.dta"
DTA_SCAN_PATTERN = re.compile(r"(\d+)\.\d+\.\d+\.dta", re.IGNORECASE)

_REQUIRED_SCORE_COLUMNS = ("MQScore", "TotalPRMScore", "PValue", "FScore")
_OPTIONAL_SCORE_COLUMNS = (
    "MedianPRMScore",
    "FractionY",
    "FractionB",
    "Intensity",
    "DeltaScore",
    "DeltaScoreOther",
)

_PASS_THROUGH_COLUMNS = (
    "MQScore",
    "Length",
    "TotalPRMScore",
    "MedianPRMScore",
    "FractionY",
    "FractionB",
    "Intensity",
    "PValue",
    "FScore",
    "DeltaScore",
    "DeltaScoreOther",
    "RecordNumber",
    "DBFilePos",
    "SpecFilePos",
    "PrecursorMZ",
    "PrecursorError",
)


class InspectParser(ResultParser):
    tool_name = SearchTools.INSPECT
    file_suffixes = ("_inspect.txt",)

    columns = (
        "SpectrumFile",
        "Scan",
        "Annotation",
        "Protein",
        "Charge",
        "MQScore",
        "Length",
        "TotalPRMScore",
        "MedianPRMScore",
        "FractionY",
        "FractionB",
        "Intensity",
        "NTT",
        "PValue",
        "FScore",
        "DeltaScore",
        "DeltaScoreOther",
        "RecordNumber",
        "DBFilePos",
        "SpecFilePos",
        "PrecursorMZ",
        "PrecursorError",
    )
    column_aliases = {"spectrumfile": "SpectrumFile", "scan#": "Scan"}
    required_columns = ("SpectrumFile", "Scan", "Annotation", "Protein", "Charge")
    header_mapped = False
    min_column_count = 15

    n_terminus_marker = "*"
    c_terminus_marker = "*"

    # InSpecT writes the first four letters of the modification name
    modification_name_length = INSPECT_NAME_LENGTH

    ranking = RankingScheme(
        primary=ScoreKey("TotalPRMScore"),
        secondary=ScoreKey("FScore"),
        rank_column="RankTotalPRMScore",
        delta_norm_column="DeltaNormTotalPRMScore",
        auxiliary_ranks=(
            AuxiliaryScore(ScoreKey("FScore"), "RankFScore", ScoreKey("TotalPRMScore")),
        ),
        auxiliary_delta_norms=(AuxiliaryScore(ScoreKey("MQScore"), "DeltaNormMQScore"),),
    )

    output_columns = (
        OutputCols.RESULT_ID,
        OutputCols.SCAN,
        OutputCols.PEPTIDE,
        OutputCols.PROTEIN,
        OutputCols.CHARGE,
        "MQScore",
        "Length",
        "TotalPRMScore",
        "MedianPRMScore",
        "FractionY",
        "FractionB",
        "Intensity",
        OutputCols.NTT,
        "PValue",
        "FScore",
        "DeltaScore",
        "DeltaScoreOther",
        "DeltaNormMQScore",
        "DeltaNormTotalPRMScore",
        "RankTotalPRMScore",
        "RankFScore",
        OutputCols.MH,
        "RecordNumber",
        "DBFilePos",
        "SpecFilePos",
        "PrecursorMZ",
        "PrecursorError",
        OutputCols.DEL_M_PPM,
    )
    float_precision = {
        "DeltaNormMQScore": 5,
        "DeltaNormTotalPRMScore": 5,
        OutputCols.MH: 6,
        OutputCols.DEL_M_PPM: 4,
    }

    @staticmethod
    def read_parameter_file(path: str) -> list[SearchModification]:
        return read_inspect_parameter_file(path)

    def _parse_fields(self, fields: list[str], line_number: int) -> SearchResult:
        scan = self._get_int(fields, "Scan", line_number)
        if scan == 0:
            # searches of concatenated DTA files report the scan in the spectrum file name
            if match := DTA_SCAN_PATTERN.search(self._get(fields, "SpectrumFile")):
                scan = int(match.group(1))

        charge = self._get_int(fields, "Charge", line_number)
        if charge < 1:
            raise MalformedInputLineError(f"invalid charge {charge}", line_number)

        peptide = self.normalize_annotation(self._get(fields, "Annotation"), line_number)
        scores = self._get_scores(
            fields,
            line_number,
            required=_REQUIRED_SCORE_COLUMNS,
            optional=_OPTIONAL_SCORE_COLUMNS,
        )

        try:
            ntt = int(self._get(fields, "NTT"))
        except ValueError:
            ntt = None

        result = self._create_result(
            scan=scan,
            charge=charge,
            peptide=peptide,
            # protein names are followed by the description
            protein=self._get(fields, "Protein").split(" ", 1)[0],
            line_number=line_number,
            scores=scores,
            values=self._get_values(fields, _PASS_THROUGH_COLUMNS),
            ntt=ntt,
        )

        precursor_mz = self._get_float(fields, "PrecursorMZ", line_number, required=False)
        precursor_error = self._get_float(
            fields, "PrecursorError", line_number, required=False
        )
        result.mass_error = corrected_error(
            precursor_mz, charge, result.monoisotopic_mass
        )
        if not math.isnan(precursor_mz) and not math.isnan(precursor_error):
            # PrecursorError is the m/z difference to the monoisotopic precursor
            result.mh = (precursor_mz - precursor_error) * charge - (
                charge - 1
            ) * MASS_PROTON

        return result
