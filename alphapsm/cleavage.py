from dataclasses import dataclass

from alphapsm.constants.keys import TerminusSymbols


@dataclass(frozen=True)
class CleavageRule:
    """Enzyme specificity, trypsin by default.

    The enzyme cleaves after any of `residues` unless the next residue is one of `exceptions`.
    """

    residues: str = "KR"
    exceptions: str = "P"

    def is_cleavage_site(self, residue_before: str, residue_after: str) -> bool:
        """Check whether the bond between two residues is consistent with the enzyme.

        Protein termini, marked by '-', are always consistent.
        """
        if TerminusSymbols.PROTEIN_TERMINUS in (residue_before, residue_after):
            return True
        return residue_before in self.residues and residue_after not in self.exceptions

    def count_termini(self, prefix: str, sequence: str, suffix: str) -> int:
        """Number of peptide termini (0, 1 or 2) consistent with the enzyme.

        Unknown flanking residues (empty prefix or suffix) never count.
        """
        if not sequence:
            return 0

        ntt = 0
        if prefix and self.is_cleavage_site(prefix, sequence[0]):
            ntt += 1
        if suffix and self.is_cleavage_site(sequence[-1], suffix):
            ntt += 1
        return ntt


TRYPSIN = CleavageRule()
