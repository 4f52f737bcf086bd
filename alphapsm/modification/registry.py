"""Registry of the modifications known while processing a search result file.

The registry resolves the modification tokens reported by the search tools (symbols, names or mass differences)
to `ModificationDefinition` objects. Modifications that can not be resolved by mass are added to the registry
with a new symbol so that repeated occurrences within one run resolve consistently.
The registry is append-only and not thread safe: create one per file, e.g. by a `deepcopy` of a loaded base registry.
"""

import logging
import os
from functools import lru_cache

import pandas as pd
from alphabase.constants.modification import MOD_DF

from alphapsm.constants.keys import (
    ModificationTypes,
    ModSummaryCols,
    TerminusState,
)
from alphapsm.exceptions import ParameterFileNotFoundError, UnresolvedModificationError
from alphapsm.modification.definition import (
    DEFAULT_MODIFICATION_SYMBOLS,
    LAST_RESORT_MODIFICATION_SYMBOL,
    NO_SYMBOL,
    ModificationDefinition,
    terminus_symbol,
)

logger = logging.getLogger()

# well known modifications, used to name modifications that are found by mass only
DEFAULT_MASS_CORRECTION_TAGS = {
    "Acetyl": 42.010565,
    "Amide": -0.984016,
    "Biotinyl": 226.077598,
    "Carbamyl": 43.005814,
    "Crotonyl": 68.026215,
    "Deamide": 0.984016,
    "Dehydro": -1.007825,
    "Dimethyl": 28.0313,
    "Formyl": 27.994915,
    "Guanid": 42.021798,
    "Hexose": 162.052824,
    "IodoAcet": 57.021464,
    "itrac": 144.102063,
    "iTRAQ8": 304.20536,
    "Malonyl": 86.000394,
    "Methyl": 14.01565,
    "NEM": 125.047679,
    "NH3_Loss": -17.026549,
    "Nitrosyl": 28.990164,
    "Phosph": 79.966331,
    "Plus1Oxy": 15.994915,
    "Plus2Oxy": 31.989829,
    "Plus3Oxy": 47.984744,
    "Succinyl": 100.016044,
    "Sulfo": 79.956815,
    "TMT0Tag": 224.152478,
    "TMT6Tag": 229.162932,
    "TMT16Tag": 304.207146,
    "Trimeth": 42.04695,
    "Ubiq_02": 114.042927,
    "13C6": 6.020129,
    "13C6_15N2": 8.014199,
    "13C6_15N4": 10.008269,
}

MASS_CORRECTION_TAG_TOLERANCE = 0.005

MODIFICATION_TABLE_COLUMNS = [
    "symbol",
    "mass",
    "target_residues",
    "modification_type",
    "name",
]


def mass_correction_tag(mass: float) -> str:
    """Name of a modification mass, the closest known tag or the signed mass, e.g. `+14.016`."""
    best_name, best_difference = None, MASS_CORRECTION_TAG_TOLERANCE
    for name, tag_mass in DEFAULT_MASS_CORRECTION_TAGS.items():
        if (difference := abs(tag_mass - mass)) <= best_difference:
            best_name, best_difference = name, difference

    return best_name if best_name is not None else f"{mass:+.3f}"


@lru_cache(maxsize=None)
def unimod_mass(name: str) -> float | None:
    """Mass of a modification by its Unimod name (case-insensitive), as known to alphabase."""
    mod_names = MOD_DF["mod_name"].str.split("@").str[0].str.lower()
    masses = MOD_DF.loc[mod_names == name.lower(), "mass"]

    return float(masses.iloc[0]) if len(masses) else None


def _to_float(token) -> float | None:
    try:
        return float(token)
    except (TypeError, ValueError):
        return None


class ModificationRegistry:
    """Registry of modification definitions.

    Parameters
    ----------
    definitions : iterable of ModificationDefinition, optional
        Initial definitions, e.g. from `load_modification_definitions`.

    mass_tolerance : float, default 0.5
        Maximum absolute mass difference in Da for mass based lookups.

    name_length : int, default 8
        Names are compared case-insensitive after truncating both sides to this length.

    """

    def __init__(
        self,
        definitions=(),
        mass_tolerance: float = 0.5,
        name_length: int = 8,
    ):
        self.mass_tolerance = mass_tolerance
        self.name_length = name_length

        self._definitions: list[ModificationDefinition] = []
        self._occurrences: list[int] = []

        for definition in definitions:
            self.add(definition)

    @property
    def definitions(self) -> tuple[ModificationDefinition, ...]:
        return tuple(self._definitions)

    @property
    def static_definitions(self) -> tuple[ModificationDefinition, ...]:
        return tuple(d for d in self._definitions if d.is_static)

    def __len__(self):
        return len(self._definitions)

    def __iter__(self):
        return iter(self._definitions)

    def add(self, definition: ModificationDefinition) -> ModificationDefinition:
        """Add a definition, returning the registered definition.

        A dynamic definition whose symbol is already registered with the same mass is merged into the existing one
        by extending its target residues. A symbol that is registered with a different mass raises a `ValueError`.
        Identical static definitions are only registered once.
        """
        for i, existing in enumerate(self._definitions):
            if definition.symbol == NO_SYMBOL or definition.symbol != existing.symbol:
                if definition == existing:
                    return existing
                continue

            if (
                abs(existing.mass - definition.mass) > 1e-4
                or existing.modification_type != definition.modification_type
            ):
                raise ValueError(
                    f"Symbol '{definition.symbol}' is already used for a modification of mass {existing.mass}"
                )

            merged = existing.with_target_residues(definition.target_residues)
            self._definitions[i] = merged
            return merged

        self._definitions.append(definition)
        self._occurrences.append(0)
        return definition

    def next_symbol(self) -> str:
        """First default symbol that is not used yet, `_` once all symbols are used."""
        used = {d.symbol for d in self._definitions}
        for symbol in DEFAULT_MODIFICATION_SYMBOLS:
            if symbol not in used:
                return symbol
        return LAST_RESORT_MODIFICATION_SYMBOL

    def lookup_by_symbol(self, symbol: str) -> ModificationDefinition | None:
        if symbol == NO_SYMBOL:
            return None
        return next((d for d in self._definitions if d.symbol == symbol), None)

    def lookup_by_name(self, name: str) -> ModificationDefinition | None:
        key = name.lower()[: self.name_length]
        return next(
            (
                d
                for d in self._definitions
                if d.name and d.name.lower()[: self.name_length] == key
            ),
            None,
        )

    def lookup_by_mass(
        self,
        mass: float,
        residue: str | None = None,
        terminus_state: str = TerminusState.NONE,
    ) -> ModificationDefinition | None:
        """Find the definition closest to `mass` within the mass tolerance.

        Definitions that target the residue or terminus are preferred over definitions for any residue,
        which are preferred over definitions for other residues. Then the smallest mass difference wins
        and remaining ties are resolved in registry order.
        """
        candidates = [
            (
                -definition.context_score(residue, terminus_state),
                round(abs(definition.mass - mass), 6),
                i,
            )
            for i, definition in enumerate(self._definitions)
            if abs(definition.mass - mass) <= self.mass_tolerance
        ]
        if not candidates:
            return None

        return self._definitions[min(candidates)[2]]

    def resolve(
        self,
        token: str | float,
        target_residue: str | None = None,
        terminus_state: str = TerminusState.NONE,
    ) -> ModificationDefinition:
        """Resolve a modification token to its definition.

        The token is tried as a registered symbol, then as a modification name and finally as a mass.
        Names that are not registered are converted to a mass using the alphabase modification table.

        Parameters
        ----------
        token : str or float
            Symbol, name or mass difference as reported by the search tool.

        target_residue : str, optional
            Residue carrying the modification.

        terminus_state : str, default TerminusState.NONE
            Position of the residue relative to the termini, used to disambiguate modifications of equal mass.

        Returns
        -------
        ModificationDefinition

        Raises
        ------
        UnresolvedModificationError
            If no definition matches.
        """
        if isinstance(token, str):
            token = token.strip()
            if (definition := self.lookup_by_symbol(token)) is not None:
                return definition

        if (mass := _to_float(token)) is None:
            if (definition := self.lookup_by_name(token)) is not None:
                return definition
            mass = unimod_mass(token)

        if mass is not None:
            definition = self.lookup_by_mass(mass, target_residue, terminus_state)
            if definition is not None:
                return definition

        raise UnresolvedModificationError(token, target_residue)

    def register_unknown(
        self,
        mass: float,
        target_residue: str | None = None,
        terminus_state: str = TerminusState.NONE,
    ) -> ModificationDefinition:
        """Add a dynamic modification for a mass that did not match any definition.

        Once all default symbols are used, the definition gets the last resort symbol and is returned without being
        registered, so every further unknown mass is reported again.
        """
        residues = target_residue or terminus_symbol(terminus_state)
        definition = ModificationDefinition(
            symbol=self.next_symbol(),
            mass=mass,
            target_residues=residues,
            modification_type=ModificationTypes.DYNAMIC,
            name=mass_correction_tag(mass),
        )
        if definition.symbol == LAST_RESORT_MODIFICATION_SYMBOL:
            logger.warning(
                f"No modification symbol left for mass {mass:.4f} on '{residues}', using '{definition.symbol}'"
            )
            return definition

        logger.info(
            f"Adding modification '{definition.symbol}' of mass {mass:.4f} ({definition.name}) on '{residues}'"
        )
        return self.add(definition)

    def _index_of(self, definition: ModificationDefinition) -> int | None:
        # merged dynamic definitions keep their symbol but not their target residues
        for i, existing in enumerate(self._definitions):
            if existing == definition or (
                definition.symbol != NO_SYMBOL
                and not definition.is_static
                and existing.symbol == definition.symbol
            ):
                return i
        return None

    def count_occurrence(self, definition: ModificationDefinition) -> None:
        if (i := self._index_of(definition)) is not None:
            self._occurrences[i] += 1

    def occurrence_count(self, definition: ModificationDefinition) -> int:
        i = self._index_of(definition)
        return self._occurrences[i] if i is not None else 0

    def to_summary_df(self) -> pd.DataFrame:
        """Summary of all definitions and their occurrence counts."""
        return pd.DataFrame(
            {
                ModSummaryCols.SYMBOL: [d.symbol for d in self._definitions],
                ModSummaryCols.MASS: [round(d.mass, 6) for d in self._definitions],
                ModSummaryCols.TARGET_RESIDUES: [
                    d.target_residues for d in self._definitions
                ],
                ModSummaryCols.TYPE: [
                    d.modification_type for d in self._definitions
                ],
                ModSummaryCols.MASS_CORRECTION_TAG: [
                    d.name for d in self._definitions
                ],
                ModSummaryCols.OCCURRENCE_COUNT: self._occurrences,
            },
            columns=ModSummaryCols.get_values(),
        )


def load_modification_definitions(path: str) -> list[ModificationDefinition]:
    """Load a tab separated modification definitions table.

    Columns are symbol, mass, target residues, modification type and name (mass correction tag).
    Empty lines are skipped, as are header and comment lines whose mass is not numeric.

    Parameters
    ----------
    path : str
        Path to the definitions file.

    Returns
    -------
    list of ModificationDefinition

    Raises
    ------
    ParameterFileNotFoundError
        If the file does not exist.
    """
    if not os.path.isfile(path):
        raise ParameterFileNotFoundError(path)

    definitions = []
    with open(path) as f:
        for line in f:
            fields = [field.strip() for field in line.rstrip("\r\n").split("\t")]
            # "#" is a valid symbol, comment lines are skipped by their non-numeric mass
            if not fields[0] or len(fields) < 2:
                continue

            if (mass := _to_float(fields[1])) is None:
                logger.debug(f"Skipping modification definition line '{line.strip()}'")
                continue

            fields += [""] * (len(MODIFICATION_TABLE_COLUMNS) - len(fields))
            residues = fields[2]
            modification_type = fields[3] or ModificationTypes.DYNAMIC

            definitions.append(
                ModificationDefinition(
                    symbol=fields[0],
                    mass=mass,
                    # the table uses '-' for "any residue"
                    target_residues="" if residues == "-" else residues,
                    modification_type=modification_type,
                    name=fields[4] or mass_correction_tag(mass),
                )
            )

    logger.info(f"Loaded {len(definitions)} modification definitions from {path}")
    return definitions
