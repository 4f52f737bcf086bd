"""Monoisotopic masses of peptides, modifications and precursors."""

import logging
import re

from alphabase.constants.aa import AA_ASCII_MASS
from alphabase.constants.atom import CHEM_MONO_MASS, MASS_H2O, MASS_PROTON

logger = logging.getLogger()

# mass difference between the C13 and C12 isotope
MASS_C13_C12 = 1.00335483

# alphabase fills unknown residues with a large placeholder mass
_UNKNOWN_RESIDUE_MASS = 1e6

# ambiguous residues, B: N or D, Z: Q or E, J and X: L or I
_AMBIGUOUS_RESIDUE_MASSES = {
    "B": 114.534935,
    "J": 113.084064,
    "X": 113.084064,
    "Z": 128.550585,
}

# element symbol followed by an optional count, e.g. C2, H-1, H(-1) or 13C(6)
_FORMULA_ELEMENT_PATTERN = re.compile(
    r"(\d*[A-Z][a-z]?)\s*(?:\((-?\d+)\)|(-?\d+))?"
)
_FORMULA_PATTERN = re.compile(r"^(?:\s*\d*[A-Z][a-z]?\s*(?:\(-?\d+\)|-?\d+)?)+\s*$")


def residue_mass(residue: str) -> float | None:
    """Monoisotopic mass of a single residue, None if unknown."""
    if residue in _AMBIGUOUS_RESIDUE_MASSES:
        return _AMBIGUOUS_RESIDUE_MASSES[residue]

    code = ord(residue)
    if code >= len(AA_ASCII_MASS):
        return None

    mass = float(AA_ASCII_MASS[code])
    return mass if mass < _UNKNOWN_RESIDUE_MASS else None


def compute_sequence_mass(sequence: str) -> float:
    """Monoisotopic mass of an unmodified peptide, including water.

    Unknown residues do not contribute to the mass and are logged.

    Parameters
    ----------
    sequence : str
        Clean peptide sequence in upper case letters.

    Returns
    -------
    float
        Neutral monoisotopic mass in Da, 0 for an empty sequence.
    """
    if not sequence:
        return 0.0

    mass = MASS_H2O
    for residue in sequence:
        if (mass_ := residue_mass(residue)) is None:
            logger.debug(f"Unknown residue '{residue}' in {sequence}")
            continue
        mass += mass_

    return mass


def compute_peptide_mass(sequence: str, modification_masses=()) -> float:
    """Monoisotopic mass of a peptide with the given modification mass differences."""
    return compute_sequence_mass(sequence) + sum(modification_masses)


def mz_to_neutral_mass(mz: float, charge: int) -> float:
    return (mz - MASS_PROTON) * charge


def neutral_mass_to_mz(mass: float, charge: int) -> float:
    return mass / charge + MASS_PROTON


def neutral_mass_to_mh(mass: float) -> float:
    """Mass of the singly protonated molecule, (M+H)+."""
    return mass + MASS_PROTON


def mass_to_ppm(delta: float, mass: float) -> float:
    if mass == 0:
        return 0.0
    return delta / mass * 1e6


def is_formula(text: str) -> bool:
    """Check whether a string is an empirical formula like `C2H3NO` or `H(-1) N(-1) O`."""
    return bool(text) and _FORMULA_PATTERN.match(text) is not None


def formula_mass(formula: str) -> float:
    """Monoisotopic mass of an empirical formula, e.g. `C2H3N1O1` or `H(-1) N(-1) O(1)`.

    Raises
    ------
    ValueError
        If the formula contains unknown elements.
    """
    if not is_formula(formula):
        raise ValueError(f"Invalid empirical formula '{formula}'")

    mass = 0.0
    for element, count_in_brackets, count in _FORMULA_ELEMENT_PATTERN.findall(formula):
        if element not in CHEM_MONO_MASS:
            raise ValueError(f"Unknown element '{element}' in formula '{formula}'")
        mass += CHEM_MONO_MASS[element] * int(count_in_brackets or count or 1)

    return mass
