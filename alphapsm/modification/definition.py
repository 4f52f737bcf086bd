from dataclasses import dataclass, replace

from alphapsm.constants.keys import ModificationTypes, TerminusState, TerminusSymbols

# symbols handed out to dynamic modifications that are not part of the definitions table
DEFAULT_MODIFICATION_SYMBOLS = "*#@$&!%~^`+="
LAST_RESORT_MODIFICATION_SYMBOL = "_"
UNKNOWN_MODIFICATION_SYMBOL = "?"
# static modifications are never written to the peptide sequence
NO_SYMBOL = "-"

STATIC_MODIFICATION_TYPES = (
    ModificationTypes.STATIC,
    ModificationTypes.TERMINAL_PEPTIDE_STATIC,
    ModificationTypes.PROTEIN_TERMINUS_STATIC,
)

# order matters: a definition targeting only "<[" is a peptide N-terminal modification
_TERMINUS_SYMBOL_TO_STATE = {
    TerminusSymbols.PEPTIDE_N: TerminusState.PEPTIDE_N,
    TerminusSymbols.PEPTIDE_C: TerminusState.PEPTIDE_C,
    TerminusSymbols.PROTEIN_N: TerminusState.PROTEIN_N,
    TerminusSymbols.PROTEIN_C: TerminusState.PROTEIN_C,
}

_STATE_TO_TERMINUS_SYMBOLS = {
    TerminusState.NONE: "",
    TerminusState.PEPTIDE_N: TerminusSymbols.PEPTIDE_N,
    TerminusState.PEPTIDE_C: TerminusSymbols.PEPTIDE_C,
    # a residue at the protein terminus is also at the peptide terminus
    TerminusState.PROTEIN_N: TerminusSymbols.PEPTIDE_N + TerminusSymbols.PROTEIN_N,
    TerminusState.PROTEIN_C: TerminusSymbols.PEPTIDE_C + TerminusSymbols.PROTEIN_C,
}

N_TERMINAL_STATES = (TerminusState.PEPTIDE_N, TerminusState.PROTEIN_N)
C_TERMINAL_STATES = (TerminusState.PEPTIDE_C, TerminusState.PROTEIN_C)


def terminus_symbol(terminus_state: str) -> str:
    """Get the target residue symbol of a terminus, e.g. '<' for the peptide N-terminus."""
    return _STATE_TO_TERMINUS_SYMBOLS[terminus_state][-1:]


@dataclass(frozen=True)
class ModificationDefinition:
    """A modification as used in the canonical peptide representation.

    Parameters
    ----------
    symbol : str
        Symbol written after the modified residue, `-` for static modifications.

    mass : float
        Monoisotopic mass difference in Da.

    target_residues : str
        Residues that can carry the modification, empty for any residue.
        May contain the terminus symbols `<`, `>` (peptide) and `[`, `]` (protein).

    modification_type : str
        One of `ModificationTypes`.

    name : str
        Short name of the modification, e.g. the mass correction tag `Phosph`.

    """

    symbol: str
    mass: float
    target_residues: str = ""
    modification_type: str = ModificationTypes.DYNAMIC
    name: str = ""

    @property
    def is_static(self) -> bool:
        return self.modification_type in STATIC_MODIFICATION_TYPES

    @property
    def terminus(self) -> str:
        """Terminus constraint, derived from target residues that only consist of terminus symbols."""
        if not self.target_residues or any(
            residue not in _TERMINUS_SYMBOL_TO_STATE for residue in self.target_residues
        ):
            return TerminusState.NONE

        for symbol, state in _TERMINUS_SYMBOL_TO_STATE.items():
            if symbol in self.target_residues:
                return state

        return TerminusState.NONE

    @property
    def is_n_terminal(self) -> bool:
        return self.terminus in N_TERMINAL_STATES

    @property
    def is_c_terminal(self) -> bool:
        return self.terminus in C_TERMINAL_STATES

    def context_score(
        self, residue: str | None = None, terminus_state: str = TerminusState.NONE
    ) -> int:
        """Score how well the definition fits a residue and terminus.

        Returns
        -------
        int
            2 if the residue or the terminus is listed in the target residues,
            1 if the definition applies to any residue,
            0 otherwise.
        """
        if any(
            symbol in self.target_residues
            for symbol in _STATE_TO_TERMINUS_SYMBOLS[terminus_state]
        ):
            return 2

        if self.terminus != TerminusState.NONE:
            return 0

        if residue and residue in self.target_residues:
            return 2

        return 1 if not self.target_residues else 0

    def with_target_residues(self, residues: str) -> "ModificationDefinition":
        """Copy of the definition with additional target residues."""
        new_residues = "".join(r for r in residues if r not in self.target_residues)
        return replace(self, target_residues=self.target_residues + new_residues)


UNKNOWN_MODIFICATION = ModificationDefinition(
    symbol=UNKNOWN_MODIFICATION_SYMBOL,
    mass=0.0,
    modification_type=ModificationTypes.UNKNOWN,
    name="Unknown",
)
