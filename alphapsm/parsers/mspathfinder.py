"""Parser for MSPathFinder `_IcTda.tsv` result files.

MSPathFinder reports the clean sequence and its flanking residues in separate columns
and lists the modifications as comma separated `Name position` pairs, e.g. `Oxidation 11,Dehydro 12`.
"""

import logging
import re

from alphapsm.constants.keys import OutputCols, SearchTools, TerminusState
from alphapsm.exceptions import MalformedInputLineError
from alphapsm.masserror import corrected_error
from alphapsm.parsers.base import ResultParser, SearchResult
from alphapsm.peptide import ModifiedPeptide, TokenKinds
from alphapsm.ranking import RankingScheme, ScoreKey

logger = logging.getLogger()

MODIFICATION_ENTRY_PATTERN = re.compile(r"^\s*(?P<name>.+?)\s+(?P<position>-?\d+)\s*$")

_REQUIRED_SCORE_COLUMNS = ("SpecEValue", "EValue")
_OPTIONAL_SCORE_COLUMNS = ("Probability", "QValue", "PepQValue")

_PASS_THROUGH_COLUMNS = (
    "MostAbundantIsotopeMz",
    "Mass",
    "Modifications",
    "Composition",
    "ProteinDesc",
    "ProteinLength",
    "ResidueStart",
    "ResidueEnd",
    "NumMatchedFragments",
    *_REQUIRED_SCORE_COLUMNS,
    *_OPTIONAL_SCORE_COLUMNS,
)


class MSPathFinderParser(ResultParser):
    tool_name = SearchTools.MSPATHFINDER
    file_suffixes = ("_ictda.tsv", "_mspathfinder.tsv")

    columns = (
        "Scan",
        "Pre",
        "Sequence",
        "Post",
        "Modifications",
        "Composition",
        "ProteinName",
        "ProteinDesc",
        "ProteinLength",
        "ResidueStart",
        "ResidueEnd",
        "Charge",
        "MostAbundantIsotopeMz",
        "Mass",
        "MS1Features",
        "NumMatchedFragments",
        "Probability",
        "SpecEValue",
        "EValue",
        "QValue",
        "PepQValue",
    )
    column_aliases = {
        "start": "ResidueStart",
        "end": "ResidueEnd",
        "protein": "ProteinName",
        "#matchedfragments": "NumMatchedFragments",
        "matchedfragments": "NumMatchedFragments",
    }
    required_columns = ("Scan", "Pre", "Sequence", "Post", "Charge", "SpecEValue")

    ranking = RankingScheme(
        primary=ScoreKey("SpecEValue", descending=False, relative=True),
        secondary=ScoreKey("Probability"),
        rank_column="Rank_SpecEValue",
        delta_norm_column="DeltaNormProbability",
        delta_norm_score=ScoreKey("Probability"),
    )

    output_columns = (
        OutputCols.RESULT_ID,
        OutputCols.SCAN,
        OutputCols.PEPTIDE,
        OutputCols.PROTEIN,
        OutputCols.CHARGE,
        "MostAbundantIsotopeMz",
        "Mass",
        "Modifications",
        "Composition",
        "ProteinDesc",
        "ProteinLength",
        "ResidueStart",
        "ResidueEnd",
        "NumMatchedFragments",
        "Probability",
        "SpecEValue",
        "EValue",
        "QValue",
        "PepQValue",
        "Rank_SpecEValue",
        "DeltaNormProbability",
        OutputCols.NTT,
        OutputCols.MH,
        OutputCols.DEL_M,
        OutputCols.ISOTOPE_ERROR,
        OutputCols.DEL_M_PPM,
    )
    float_precision = {
        "DeltaNormProbability": 5,
        OutputCols.MH: 6,
        OutputCols.DEL_M_PPM: 4,
    }

    # results are grouped by scan but not ordered
    requires_scan_sort = True

    def _parse_fields(self, fields: list[str], line_number: int) -> SearchResult:
        scan = self._get_int(fields, "Scan", line_number)
        charge = self._get_int(fields, "Charge", line_number)
        if charge < 1:
            raise MalformedInputLineError(f"invalid charge {charge}", line_number)

        sequence = self._get(fields, "Sequence").upper()
        if not sequence.isalpha():
            raise MalformedInputLineError(f"invalid sequence '{sequence}'", line_number)

        peptide = ModifiedPeptide(
            self._get(fields, "Pre"),
            sequence,
            self._get(fields, "Post"),
        )
        self._add_listed_modifications(
            peptide, self._get(fields, "Modifications"), line_number
        )
        self._add_static_modifications(peptide)

        result = self._create_result(
            scan=scan,
            charge=charge,
            peptide=peptide,
            protein=self._get(fields, "ProteinName"),
            line_number=line_number,
            scores=self._get_scores(
                fields,
                line_number,
                required=_REQUIRED_SCORE_COLUMNS,
                optional=_OPTIONAL_SCORE_COLUMNS,
            ),
            values=self._get_values(fields, _PASS_THROUGH_COLUMNS),
        )
        # the most abundant isotope is usually not the monoisotopic peak
        result.mass_error = corrected_error(
            self._get(fields, "MostAbundantIsotopeMz"), charge, result.monoisotopic_mass
        )
        return result

    def _add_listed_modifications(
        self, peptide: ModifiedPeptide, modifications: str, line_number: int
    ) -> None:
        """Add `Name position` entries, positions are 1-based and position 0 is the N-terminus."""
        if not modifications.strip():
            return

        for entry in modifications.split(","):
            if not (match := MODIFICATION_ENTRY_PATTERN.match(entry)):
                message = f"Line {line_number}: invalid modification entry '{entry}', expected a name and a position"
                self.error_log.append(message)
                logger.warning(message)
                continue

            position = int(match.group("position"))
            if position <= 1:
                terminus_state = peptide.n_terminus_state
            elif position >= len(peptide.sequence):
                terminus_state = peptide.c_terminus_state
            else:
                terminus_state = TerminusState.NONE

            residue_index = min(max(position, 1), len(peptide.sequence)) - 1
            definition = self.resolve_modification(
                TokenKinds.NAME,
                match.group("name"),
                peptide.sequence[residue_index],
                terminus_state,
                line_number,
            )
            if not definition.is_static:
                peptide.add_modification(
                    definition, residue_index, n_terminal=position < 1
                )
