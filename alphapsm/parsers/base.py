"""Base class of the search tool specific result parsers."""

import logging
import math
from dataclasses import dataclass, field

from alphapsm.cleavage import TRYPSIN, CleavageRule
from alphapsm.constants.keys import OutputCols, TerminusState
from alphapsm.exceptions import MalformedInputLineError, UnresolvedModificationError
from alphapsm.mass import neutral_mass_to_mh
from alphapsm.masserror import NO_MASS_ERROR, MassError
from alphapsm.modification.definition import (
    UNKNOWN_MODIFICATION,
    ModificationDefinition,
)
from alphapsm.modification.params import (
    SearchModification,
    read_msgf_parameter_file,
    register_search_modifications,
)
from alphapsm.modification.registry import ModificationRegistry
from alphapsm.peptide import (
    ModifiedPeptide,
    TokenKinds,
    replace_terminus_markers,
    split_prefix_suffix,
    tokenize_annotation,
)
from alphapsm.ranking import RankingScheme
from alphapsm.reporting.error_log import ErrorLog

logger = logging.getLogger()


@dataclass
class SearchResult:
    """A peptide-spectrum match read from a search result file.

    `scores` holds the numeric columns used for ranking and filtering,
    `values` the text of the columns that are written unchanged.
    `rank`, `delta_norm` and `extra` are set by the ranking.
    """

    scan: int
    charge: int
    peptide: str
    protein: str
    modified_peptide: ModifiedPeptide
    scores: dict[str, float] = field(default_factory=dict)
    values: dict[str, str] = field(default_factory=dict)
    line_number: int = 0
    monoisotopic_mass: float = 0.0
    mh: float = 0.0
    mass_error: MassError = NO_MASS_ERROR
    ntt: int = 0
    rank: int = 0
    delta_norm: float = 0.0
    extra: dict = field(default_factory=dict)


@dataclass(frozen=True)
class HeaderLine:
    columns: tuple[str, ...]


@dataclass(frozen=True)
class MalformedLine:
    line_number: int
    reason: str


def is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def looks_like_header(fields: list[str]) -> bool:
    """A line is a header if none of its first three fields is a number."""
    return not any(is_number(field) for field in fields[:3])


def normalize_header_name(name: str) -> str:
    return name.strip().lstrip("#").strip().lower()


class ResultParser:
    """Parses the lines of a search result file into `SearchResult` objects.

    Subclasses describe the file layout with class attributes and implement `_parse_fields`.

    Columns are addressed by key. `columns` lists the keys in the order the tool writes them, which is used
    for files without a header. If `header_mapped` is set, the positions are taken from the header line instead,
    using `column_aliases` to map header names (case-insensitive, without leading '#') to keys.

    Parameters
    ----------
    registry : ModificationRegistry, optional
        Modifications of the search, extended with unknown modifications while parsing.

    error_log : ErrorLog, optional
        Collects the messages of malformed lines and unresolved modifications.

    cleavage_rule : CleavageRule, default trypsin
        Enzyme used to count the tryptic termini.

    """

    tool_name = ""
    file_suffixes: tuple[str, ...] = ()

    columns: tuple[str, ...] = ()
    column_aliases: dict[str, str] = {}
    required_columns: tuple[str, ...] = ()
    header_mapped = True
    min_column_count = 0

    # protein terminus markers of the tool, replaced by '-'
    n_terminus_marker = "-"
    c_terminus_marker = "-"

    ranking: RankingScheme = None
    output_columns: tuple[str, ...] = ()
    float_precision: dict[str, int] = {}

    # results are not ordered by scan and need to be sorted before ranking
    requires_scan_sort = False

    # length modification names are compared at, the registry default if None
    modification_name_length: int | None = None

    def __init__(
        self,
        registry: ModificationRegistry | None = None,
        error_log: ErrorLog | None = None,
        cleavage_rule: CleavageRule = TRYPSIN,
    ):
        self.registry = registry if registry is not None else ModificationRegistry()
        self.error_log = error_log if error_log is not None else ErrorLog()
        self.cleavage_rule = cleavage_rule

        if self.modification_name_length is not None:
            self.registry.name_length = self.modification_name_length

        self._column_index = {key: i for i, key in enumerate(self.columns)}
        self._is_first_line = True

    @staticmethod
    def read_parameter_file(path: str) -> list[SearchModification]:
        return read_msgf_parameter_file(path)

    def load_parameter_file(self, path: str) -> list[ModificationDefinition]:
        """Register the modifications of a search tool parameter file."""
        return register_search_modifications(
            self.registry, self.read_parameter_file(path)
        )

    def report(self) -> None:
        """Log a summary of the parsed file, called once all lines were read."""

    @classmethod
    def key_for_header_name(cls, name: str) -> str | None:
        normalized = normalize_header_name(name)
        if normalized in cls.column_aliases:
            return cls.column_aliases[normalized]
        return next((key for key in cls.columns if key.lower() == normalized), None)

    @classmethod
    def matches_header(cls, fields: list[str]) -> bool:
        """Check whether a header line contains all required columns of the tool."""
        keys = {cls.key_for_header_name(field) for field in fields}
        return bool(cls.required_columns) and all(
            key in keys for key in cls.required_columns
        )

    def parse_line(
        self, line: str, line_number: int
    ) -> SearchResult | HeaderLine | MalformedLine:
        """Parse a single line of the result file.

        The first line is treated as a header if none of its first three fields is numeric.
        Malformed lines are recorded in the error log and returned as `MalformedLine`.
        """
        line = line.rstrip("\r\n")
        if not line.strip():
            return MalformedLine(line_number, "empty line")

        fields = line.split("\t")

        if self._is_first_line:
            self._is_first_line = False
            if looks_like_header(fields):
                if self.header_mapped:
                    self._read_header(fields)
                return HeaderLine(tuple(fields))

        try:
            if len(fields) < self.min_column_count:
                raise MalformedInputLineError(
                    f"expected at least {self.min_column_count} columns, found {len(fields)}",
                    line_number,
                )
            return self._parse_fields(fields, line_number)
        except MalformedInputLineError as e:
            self.error_log.append(str(e))
            logger.debug(str(e))
            return MalformedLine(line_number, str(e))

    def _read_header(self, fields: list[str]) -> None:
        column_index = {}
        for i, name in enumerate(fields):
            key = self.key_for_header_name(name)
            if key is not None and key not in column_index:
                column_index[key] = i

        for key in self.required_columns:
            if key not in column_index:
                message = f"Required column '{key}' not found in the header of the {self.tool_name} file"
                self.error_log.append(message)
                logger.warning(message)

        self._column_index = column_index
        self.min_column_count = max(
            (column_index[key] + 1 for key in self.required_columns if key in column_index),
            default=0,
        )

    def _parse_fields(self, fields: list[str], line_number: int) -> SearchResult:
        raise NotImplementedError("Subclasses must implement _parse_fields")

    def _get(self, fields: list[str], key: str, default: str = "") -> str:
        index = self._column_index.get(key)
        if index is None or index >= len(fields):
            return default
        return fields[index].strip()

    def _get_float(
        self, fields: list[str], key: str, line_number: int, required: bool = True
    ) -> float:
        text = self._get(fields, key)
        try:
            return float(text)
        except ValueError:
            if required:
                raise MalformedInputLineError(
                    f"column '{key}' is not numeric: '{text}'", line_number
                ) from None
            return math.nan

    def _get_int(self, fields: list[str], key: str, line_number: int) -> int:
        text = self._get(fields, key)
        try:
            return int(text)
        except ValueError:
            raise MalformedInputLineError(
                f"column '{key}' is not an integer: '{text}'", line_number
            ) from None

    def _get_scores(
        self,
        fields: list[str],
        line_number: int,
        required: tuple[str, ...] = (),
        optional: tuple[str, ...] = (),
    ) -> dict[str, float]:
        scores = {key: self._get_float(fields, key, line_number) for key in required}
        scores.update(
            {
                key: self._get_float(fields, key, line_number, required=False)
                for key in optional
            }
        )
        return scores

    def _get_values(self, fields: list[str], keys: tuple[str, ...]) -> dict[str, str]:
        return {key: self._get(fields, key) for key in keys}

    def normalize_annotation(self, annotation: str, line_number: int = 0) -> ModifiedPeptide:
        """Convert a peptide annotation of the tool into a `ModifiedPeptide`.

        Terminus markers are replaced by '-'. Modification tokens (masses, names or symbols) are resolved
        with the registry. Tokens before the first residue are N-terminal. Static modifications are not
        written by some tools and are therefore added for every matching residue, ignoring inline statics.
        """
        annotation = replace_terminus_markers(
            annotation.strip(), self.n_terminus_marker, self.c_terminus_marker
        )
        prefix, core, suffix = split_prefix_suffix(annotation)
        tokens = tokenize_annotation(core)

        sequence = "".join(text for kind, text in tokens if kind == TokenKinds.RESIDUE)
        if not sequence:
            raise MalformedInputLineError(
                f"peptide '{annotation}' has no residues", line_number
            )

        peptide = ModifiedPeptide(prefix, sequence, suffix)

        residue_index = -1
        for kind, text in tokens:
            if kind == TokenKinds.RESIDUE:
                residue_index += 1
            else:
                self._add_modification_token(peptide, kind, text, residue_index, line_number)

        self._add_static_modifications(peptide)
        return peptide

    def _add_modification_token(
        self,
        peptide: ModifiedPeptide,
        kind: str,
        token: str,
        residue_index: int,
        line_number: int,
    ) -> None:
        leading = residue_index < 0
        if leading:
            residue, terminus_state = None, peptide.n_terminus_state
        else:
            residue = peptide.sequence[residue_index]
            terminus_state = (
                peptide.c_terminus_state
                if residue_index == len(peptide.sequence) - 1
                else peptide.terminus_state(residue_index)
            )

        definition = self.resolve_modification(
            kind, token, residue, terminus_state, line_number
        )
        if not definition.is_static:
            peptide.add_modification(definition, max(residue_index, 0), n_terminal=leading)

    def resolve_modification(
        self,
        kind: str,
        token: str | float,
        residue: str | None,
        terminus_state: str,
        line_number: int,
    ) -> ModificationDefinition:
        """Resolve a token with the registry.

        Unresolved masses are registered as new modifications, other unresolved tokens get the
        unknown modification symbol. Both are recorded in the error log.
        """
        try:
            return self.registry.resolve(token, residue, terminus_state)
        except UnresolvedModificationError as e:
            message = f"Line {line_number}: {e}"
            self.error_log.append(message)
            logger.warning(message)

            if kind == TokenKinds.MASS:
                return self.registry.register_unknown(float(token), residue, terminus_state)
            return UNKNOWN_MODIFICATION

    def _add_static_modifications(self, peptide: ModifiedPeptide) -> None:
        last_index = len(peptide.sequence) - 1
        for definition in self.registry.static_definitions:
            terminus = definition.terminus
            # protein terminal modifications only apply at the protein terminus
            if definition.is_n_terminal:
                if (
                    terminus == TerminusState.PEPTIDE_N
                    or peptide.n_terminus_state == TerminusState.PROTEIN_N
                ):
                    peptide.add_modification(definition, 0)
            elif definition.is_c_terminal:
                if (
                    terminus == TerminusState.PEPTIDE_C
                    or peptide.c_terminus_state == TerminusState.PROTEIN_C
                ):
                    peptide.add_modification(definition, last_index)
            else:
                for i, residue in enumerate(peptide.sequence):
                    if residue in definition.target_residues:
                        peptide.add_modification(definition, i)

    def _create_result(
        self,
        *,
        scan: int,
        charge: int,
        peptide: ModifiedPeptide,
        protein: str,
        line_number: int,
        scores: dict[str, float] | None = None,
        values: dict[str, str] | None = None,
        ntt: int | None = None,
    ) -> SearchResult:
        monoisotopic_mass = peptide.monoisotopic_mass
        return SearchResult(
            scan=scan,
            charge=charge,
            peptide=str(peptide),
            protein=protein,
            modified_peptide=peptide,
            scores=scores or {},
            values=values or {},
            line_number=line_number,
            monoisotopic_mass=monoisotopic_mass,
            mh=neutral_mass_to_mh(monoisotopic_mass),
            ntt=ntt
            if ntt is not None
            else self.cleavage_rule.count_termini(
                peptide.prefix, peptide.sequence, peptide.suffix
            ),
        )

    def output_row(self, record: SearchResult, result_id: int) -> dict:
        """Values of the output columns of a record."""
        return {
            **record.values,
            **record.extra,
            OutputCols.RESULT_ID: result_id,
            OutputCols.SCAN: record.scan,
            OutputCols.PEPTIDE: record.peptide,
            OutputCols.PROTEIN: record.protein,
            OutputCols.CHARGE: record.charge,
            OutputCols.NTT: record.ntt,
            OutputCols.MH: record.mh,
            OutputCols.DEL_M: record.mass_error.error_da,
            OutputCols.DEL_M_PPM: record.mass_error.error_ppm,
            OutputCols.ISOTOPE_ERROR: record.mass_error.isotope_error,
            self.ranking.rank_column: record.rank,
            self.ranking.delta_norm_column: record.delta_norm,
        }
