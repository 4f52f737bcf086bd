"""Canonical peptide representation `prefix.SEQUENCE.suffix` with modification symbols after the residues."""

import re
from dataclasses import dataclass, field

from alphapsm.constants.keys import TerminusState, TerminusSymbols
from alphapsm.mass import compute_peptide_mass
from alphapsm.modification.definition import ModificationDefinition

# signed mass difference as written by the search tools, e.g. +15.995, -17.03 or +16
MASS_TOKEN_PATTERN = re.compile(r"[+-]\d+(?:\.\d*)?")
# lower case modification names as written by InSpecT, e.g. phos
NAME_TOKEN_PATTERN = re.compile(r"[a-z][a-z0-9_]*")


class TokenKinds:
    RESIDUE = "residue"
    MASS = "mass"
    NAME = "name"
    SYMBOL = "symbol"


def split_prefix_suffix(annotation: str) -> tuple[str, str, str]:
    """Split `K.PEPTIDE.R` into prefix, peptide and suffix.

    Annotations without flanking residues are returned with empty prefix and suffix.
    """
    if len(annotation) >= 4 and annotation[1] == "." and annotation[-2] == ".":
        return annotation[0], annotation[2:-2], annotation[-1]
    return "", annotation, ""


def replace_terminus_markers(
    annotation: str, n_terminus_marker: str, c_terminus_marker: str
) -> str:
    """Replace tool specific protein terminus markers, e.g. `_.PEPTIDE._` becomes `-.PEPTIDE.-`."""
    if n_terminus_marker and annotation.startswith(n_terminus_marker + "."):
        annotation = TerminusSymbols.PROTEIN_TERMINUS + annotation[len(n_terminus_marker) :]
    if c_terminus_marker and annotation.endswith("." + c_terminus_marker):
        annotation = annotation[: -len(c_terminus_marker)] + TerminusSymbols.PROTEIN_TERMINUS
    return annotation


def tokenize_annotation(peptide: str) -> list[tuple[str, str]]:
    """Split an annotated peptide (without prefix and suffix) into residues and modification tokens.

    Upper case letters are residues, signed numbers are masses, lower case words are names
    and every other character is a symbol.
    """
    tokens = []
    position = 0
    while position < len(peptide):
        if match := MASS_TOKEN_PATTERN.match(peptide, position):
            tokens.append((TokenKinds.MASS, match.group()))
            position = match.end()
        elif match := NAME_TOKEN_PATTERN.match(peptide, position):
            tokens.append((TokenKinds.NAME, match.group()))
            position = match.end()
        else:
            character = peptide[position]
            kind = TokenKinds.RESIDUE if character.isupper() else TokenKinds.SYMBOL
            tokens.append((kind, character))
            position += 1

    return tokens


@dataclass(frozen=True)
class PeptideModification:
    """A modification at a residue, `residue_index` is 0-based."""

    definition: ModificationDefinition
    residue_index: int
    # written before the first residue instead of after the residue
    n_terminal: bool = False


@dataclass
class ModifiedPeptide:
    """Peptide with its flanking residues and modifications.

    Parameters
    ----------
    prefix : str
        Residue before the peptide, `-` at the protein N-terminus, empty if unknown.

    sequence : str
        Clean sequence in upper case letters.

    suffix : str
        Residue after the peptide, `-` at the protein C-terminus, empty if unknown.

    """

    prefix: str
    sequence: str
    suffix: str
    modifications: list[PeptideModification] = field(default_factory=list)

    def terminus_state(self, residue_index: int) -> str:
        """Position of a residue relative to the peptide and protein termini, the N-terminus wins for single residues."""
        if residue_index <= 0:
            return (
                TerminusState.PROTEIN_N
                if self.prefix == TerminusSymbols.PROTEIN_TERMINUS
                else TerminusState.PEPTIDE_N
            )
        if residue_index >= len(self.sequence) - 1:
            return self.c_terminus_state
        return TerminusState.NONE

    @property
    def n_terminus_state(self) -> str:
        return self.terminus_state(0)

    @property
    def c_terminus_state(self) -> str:
        return (
            TerminusState.PROTEIN_C
            if self.suffix == TerminusSymbols.PROTEIN_TERMINUS
            else TerminusState.PEPTIDE_C
        )

    def add_modification(
        self,
        definition: ModificationDefinition,
        residue_index: int,
        n_terminal: bool = False,
    ) -> None:
        if not self.sequence:
            raise ValueError("Can not add a modification to an empty peptide")
        residue_index = min(max(residue_index, 0), len(self.sequence) - 1)
        self.modifications.append(
            PeptideModification(
                definition, residue_index, n_terminal or definition.is_n_terminal
            )
        )

    @property
    def monoisotopic_mass(self) -> float:
        """Neutral monoisotopic mass including all modifications."""
        return compute_peptide_mass(
            self.sequence, (m.definition.mass for m in self.modifications)
        )

    @property
    def modified_sequence(self) -> str:
        """Sequence with the symbols of all non-static modifications.

        N-terminal symbols precede the first residue, C-terminal symbols follow the last residue
        and all other symbols follow their residue.
        """
        n_terminal_symbols = []
        residue_symbols = [[] for _ in self.sequence]
        c_terminal_symbols = []

        for modification in self.modifications:
            definition = modification.definition
            if definition.is_static:
                continue
            if modification.n_terminal:
                n_terminal_symbols.append(definition.symbol)
            elif definition.is_c_terminal:
                c_terminal_symbols.append(definition.symbol)
            else:
                residue_symbols[modification.residue_index].append(definition.symbol)

        return (
            "".join(n_terminal_symbols)
            + "".join(
                residue + "".join(symbols)
                for residue, symbols in zip(self.sequence, residue_symbols, strict=True)
            )
            + "".join(c_terminal_symbols)
        )

    def __str__(self):
        if not self.prefix and not self.suffix:
            return self.modified_sequence
        return f"{self.prefix}.{self.modified_sequence}.{self.suffix}"
