"""Parser for MS-GF+ tsv result files (MzidToTsvConverter or `-tsv` output).

Modifications are written as signed masses after the residue, e.g. `K.M+15.995PEPTIDE.R`,
N-terminal modifications before the first residue. Protein termini are marked by `_`.
"""

import re

from alphapsm.constants.keys import OutputCols, SearchTools
from alphapsm.exceptions import MalformedInputLineError
from alphapsm.masserror import corrected_error
from alphapsm.parsers.base import ResultParser, SearchResult
from alphapsm.ranking import RankingScheme, ScoreKey

# flanking residues appended to the protein name, e.g. "Prot1(pre=K,post=A)"
PROTEIN_FLANKING_PATTERN = re.compile(r"\(pre=.,post=.\)$")
SPEC_ID_SCAN_PATTERN = re.compile(r"(?:scan|index)=(\d+)")

_SCORE_COLUMNS = ("DeNovoScore", "MSGFScore", "SpecEValue", "EValue")
_OPTIONAL_SCORE_COLUMNS = ("QValue", "PepQValue")
_PASS_THROUGH_COLUMNS = (
    "FragMethod",
    "SpecID",
    "PrecursorError",
    *_SCORE_COLUMNS,
    *_OPTIONAL_SCORE_COLUMNS,
)


class MSGFPlusParser(ResultParser):
    tool_name = SearchTools.MSGFPLUS
    file_suffixes = ("_msgfplus.tsv", "_msgfplus.txt", "_msgfdb.txt", ".msgf.tsv")

    columns = (
        "SpecFile",
        "SpecID",
        "ScanNum",
        "ScanTime",
        "FragMethod",
        "Precursor",
        "IsotopeError",
        "PrecursorError",
        "Charge",
        "Peptide",
        "Protein",
        "DeNovoScore",
        "MSGFScore",
        "SpecEValue",
        "EValue",
        "QValue",
        "PepQValue",
    )
    column_aliases = {
        "specindex": "SpecID",
        "scan#": "ScanNum",
        "scantime(min)": "ScanTime",
        "precursorerror(ppm)": "PrecursorError",
        "precursorerror(da)": "PrecursorError",
        # MSGFDB names
        "specprob": "SpecEValue",
        "p-value": "EValue",
        "fdr": "QValue",
        "pepfdr": "PepQValue",
    }
    required_columns = ("ScanNum", "Charge", "Peptide", "Protein", "MSGFScore", "SpecEValue")

    n_terminus_marker = "_"
    c_terminus_marker = "_"

    ranking = RankingScheme(
        primary=ScoreKey("SpecEValue", descending=False, relative=True),
        secondary=ScoreKey("MSGFScore"),
        rank_column="Rank_SpecEValue",
        delta_norm_column="DeltaNormMSGFScore",
        delta_norm_score=ScoreKey("MSGFScore"),
    )

    output_columns = (
        OutputCols.RESULT_ID,
        OutputCols.SCAN,
        "FragMethod",
        "SpecID",
        OutputCols.PEPTIDE,
        OutputCols.PROTEIN,
        OutputCols.CHARGE,
        "PrecursorMZ",
        "PrecursorError",
        OutputCols.DEL_M,
        OutputCols.NTT,
        "DeNovoScore",
        "MSGFScore",
        "SpecEValue",
        "EValue",
        "QValue",
        "PepQValue",
        "DeltaNormMSGFScore",
        "Rank_SpecEValue",
        OutputCols.MH,
        OutputCols.ISOTOPE_ERROR,
        OutputCols.DEL_M_PPM,
    )
    float_precision = {
        "DeltaNormMSGFScore": 5,
        OutputCols.DEL_M: 5,
        OutputCols.MH: 6,
        OutputCols.DEL_M_PPM: 4,
    }

    # results of MzidToTsvConverter are ordered by spectrum file position, not scan
    requires_scan_sort = True

    def _parse_fields(self, fields: list[str], line_number: int) -> SearchResult:
        scan = self._get_int(fields, "ScanNum", line_number)
        if scan < 0:
            # spectra without scan numbers, e.g. "controllerType=0 controllerNumber=1 scan=1234" or "index=12"
            if match := SPEC_ID_SCAN_PATTERN.search(self._get(fields, "SpecID")):
                scan = int(match.group(1))
        charge = self._get_int(fields, "Charge", line_number)
        if charge < 1:
            raise MalformedInputLineError(f"invalid charge {charge}", line_number)

        peptide = self.normalize_annotation(self._get(fields, "Peptide"), line_number)
        scores = self._get_scores(
            fields,
            line_number,
            required=_SCORE_COLUMNS,
            optional=_OPTIONAL_SCORE_COLUMNS,
        )

        values = self._get_values(fields, _PASS_THROUGH_COLUMNS)
        values["PrecursorMZ"] = self._get(fields, "Precursor")

        result = self._create_result(
            scan=scan,
            charge=charge,
            peptide=peptide,
            protein=PROTEIN_FLANKING_PATTERN.sub("", self._get(fields, "Protein")),
            line_number=line_number,
            scores=scores,
            values=values,
        )
        result.mass_error = corrected_error(
            values["PrecursorMZ"], charge, result.monoisotopic_mass
        )
        return result

