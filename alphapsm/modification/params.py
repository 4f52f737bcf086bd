"""Modifications declared in search tool parameter files.

Supported formats:

- InSpecT: `mod,<mass>,<residues>,<opt|fix|nterminal|cterminal>[,<name>]`
- MS-GF+ and MSPathFinder: `[StaticMod=|DynamicMod=]<mass or formula>,<residues>,<opt|fix>,<location>,<name>`
  with location one of `any`, `N-term`, `C-term`, `Prot-N-term`, `Prot-C-term`
- MODa: `ADD=<residue>, <mass>` for static modifications
"""

import logging
import os
from dataclasses import dataclass

from alphapsm.constants.keys import ModificationTypes, TerminusSymbols
from alphapsm.exceptions import ParameterFileNotFoundError
from alphapsm.mass import formula_mass, is_formula
from alphapsm.modification.definition import NO_SYMBOL, ModificationDefinition
from alphapsm.modification.registry import ModificationRegistry, mass_correction_tag

logger = logging.getLogger()

# InSpecT only writes the first characters of a modification name into the annotation
INSPECT_NAME_LENGTH = 4
INSPECT_PHOSPHO_MASS = 79.966331

# residues placeholder for "any residue"
ANY_RESIDUE = "*"

_MSGF_LOCATIONS = {
    "any": "",
    "n-term": TerminusSymbols.PEPTIDE_N,
    "c-term": TerminusSymbols.PEPTIDE_C,
    "prot-n-term": TerminusSymbols.PROTEIN_N,
    "prot-c-term": TerminusSymbols.PROTEIN_C,
}

_INSPECT_TERMINI = {
    "nterminal": TerminusSymbols.PEPTIDE_N,
    "cterminal": TerminusSymbols.PEPTIDE_C,
}


@dataclass(frozen=True)
class SearchModification:
    """A modification as declared in a parameter file, before a symbol has been assigned."""

    mass: float
    target_residues: str
    modification_type: str
    name: str


def _read_lines(path: str):
    if not os.path.isfile(path):
        raise ParameterFileNotFoundError(path)

    with open(path) as f:
        for line in f:
            # comments may follow the definition
            line = line.split("#", 1)[0].strip()
            if line:
                yield line


def _combine_residues(residues: str, terminus: str) -> str:
    residues = "" if residues in ("", ANY_RESIDUE) else residues
    return residues + terminus if residues else terminus


def _parse_mass(value: str) -> float:
    value = value.strip()
    try:
        return float(value)
    except ValueError:
        if is_formula(value):
            return formula_mass(value)
        raise


def read_inspect_parameter_file(path: str) -> list[SearchModification]:
    """Read the `mod,...` lines of an InSpecT parameter file."""
    modifications = []
    n_unnamed = 0

    for line in _read_lines(path):
        fields = [field.strip() for field in line.split(",")]
        if fields[0].lower() != "mod" or len(fields) < 3:
            continue

        try:
            mass = float(fields[1])
        except ValueError:
            logger.warning(f"Invalid modification mass in InSpecT parameter line '{line}'")
            continue

        kind = fields[3].lower() if len(fields) > 3 and fields[3] else "fix"
        if len(fields) > 4 and fields[4]:
            name = fields[4].lower()[:INSPECT_NAME_LENGTH]
        else:
            n_unnamed += 1
            name = f"UnnamedMod{n_unnamed}"

        # InSpecT allows integer masses, use the exact mass for phosphorylation
        if name == "phos" and abs(mass - 80) < 0.01:
            mass = INSPECT_PHOSPHO_MASS

        if kind in _INSPECT_TERMINI:
            modification_type = ModificationTypes.DYNAMIC
            residues = _combine_residues(fields[2], _INSPECT_TERMINI[kind])
        else:
            modification_type = (
                ModificationTypes.STATIC if kind == "fix" else ModificationTypes.DYNAMIC
            )
            residues = _combine_residues(fields[2], "")

        modifications.append(
            SearchModification(mass, residues, modification_type, name)
        )

    return modifications


def read_msgf_parameter_file(path: str) -> list[SearchModification]:
    """Read the modifications of an MS-GF+, MSPathFinder or MODa parameter file."""
    modifications = []

    for line in _read_lines(path):
        key, separator, value = line.partition("=")
        key = key.strip().lower()

        if separator and key == "add":
            # MODa static modification: ADD=C, 57.021464
            residue, _, mass = value.partition(",")
            try:
                mass = float(mass)
            except ValueError:
                logger.warning(f"Invalid MODa modification line '{line}'")
                continue
            if mass != 0:
                modifications.append(
                    SearchModification(
                        mass,
                        residue.strip(),
                        ModificationTypes.STATIC,
                        mass_correction_tag(mass),
                    )
                )
            continue

        if separator and key not in ("staticmod", "dynamicmod"):
            continue

        definition = value if separator else line
        if definition.strip().lower() == "none":
            continue

        fields = [field.strip() for field in definition.split(",")]
        if len(fields) < 5:
            logger.warning(f"Invalid modification line '{line}', expected 5 fields")
            continue

        try:
            mass = _parse_mass(fields[0])
        except ValueError:
            logger.warning(f"Invalid modification mass or formula in line '{line}'")
            continue

        is_static = fields[2].lower() == "fix"
        location = _MSGF_LOCATIONS.get(fields[3].lower())
        if location is None:
            logger.warning(f"Unknown modification location '{fields[3]}' in line '{line}'")
            continue

        if not is_static:
            modification_type = ModificationTypes.DYNAMIC
        elif location in (TerminusSymbols.PROTEIN_N, TerminusSymbols.PROTEIN_C):
            modification_type = ModificationTypes.PROTEIN_TERMINUS_STATIC
        elif location:
            modification_type = ModificationTypes.TERMINAL_PEPTIDE_STATIC
        else:
            modification_type = ModificationTypes.STATIC

        modifications.append(
            SearchModification(
                mass,
                _combine_residues(fields[1], location),
                modification_type,
                fields[4] or mass_correction_tag(mass),
            )
        )

    return modifications


def register_search_modifications(
    registry: ModificationRegistry, modifications: list[SearchModification]
) -> list[ModificationDefinition]:
    """Add parameter file modifications to the registry.

    Static modifications get no symbol. Dynamic modifications reuse the symbol of a registered dynamic
    modification of the same mass and name, otherwise they get the next free default symbol.
    """
    registered = []
    for modification in modifications:
        if modification.modification_type == ModificationTypes.DYNAMIC:
            existing = next(
                (
                    d
                    for d in registry
                    if d.modification_type == ModificationTypes.DYNAMIC
                    and d.name == modification.name
                    and abs(d.mass - modification.mass) < 1e-3
                ),
                None,
            )
            symbol = existing.symbol if existing is not None else registry.next_symbol()
            mass = existing.mass if existing is not None else modification.mass
        else:
            symbol, mass = NO_SYMBOL, modification.mass

        registered.append(
            registry.add(
                ModificationDefinition(
                    symbol=symbol,
                    mass=mass,
                    target_residues=modification.target_residues,
                    modification_type=modification.modification_type,
                    name=modification.name,
                )
            )
        )

    logger.info(f"Registered {len(registered)} modifications from the parameter file")
    return registered
