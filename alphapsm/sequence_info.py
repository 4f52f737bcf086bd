"""Unique sequences of the synopsis and their companion files.

Every distinct combination of clean sequence and modification description gets a unique sequence id, starting at 1.
The ids link four tables:

- `ResultToSeqMap`: result id of each synopsis row to its unique sequence id
- `SeqInfo`: modification count, description and monoisotopic mass of each unique sequence
- `ModDetails`: mass correction tag and position of each modification of a unique sequence
- `SeqToProteinMap`: proteins of each unique sequence with cleavage and terminus state
"""

import logging

import pandas as pd

from alphapsm.constants.keys import (
    ModDetailsCols,
    ModificationTypes,
    ResultToSeqMapCols,
    SeqInfoCols,
    SeqToProteinMapCols,
    TerminusSymbols,
)
from alphapsm.exceptions import OutputWriteFailureError
from alphapsm.peptide import ModifiedPeptide

logger = logging.getLogger()

RESULT_TO_SEQ_MAP_SUFFIX = "ResultToSeqMap"
SEQ_INFO_SUFFIX = "SeqInfo"
MOD_DETAILS_SUFFIX = "ModDetails"
SEQ_TO_PROTEIN_MAP_SUFFIX = "SeqToProteinMap"

# terminus state of a peptide in its protein
TERMINUS_STATE_NONE = 0
TERMINUS_STATE_PROTEIN_N = 1
TERMINUS_STATE_PROTEIN_C = 2
TERMINUS_STATE_PROTEIN_N_AND_C = 3

MOD_DESCRIPTION_SEPARATOR = ","


def modification_positions(peptide: ModifiedPeptide) -> list[tuple[str, int]]:
    """Mass correction tag and 1-based residue position of each modification, ordered by position and tag.

    Isotopic modifications apply to the whole peptide and have position 0.
    """
    positions = []
    for modification in peptide.modifications:
        definition = modification.definition
        position = (
            0
            if definition.modification_type == ModificationTypes.ISOTOPIC
            else modification.residue_index + 1
        )
        positions.append(((definition.name or definition.symbol).strip(), position))

    return sorted(positions, key=lambda tag_position: (tag_position[1], tag_position[0]))


def modification_description(peptide: ModifiedPeptide) -> str:
    """Modifications as `tag:position` list, e.g. `Plus1Oxy:1,Phosph:5`."""
    return MOD_DESCRIPTION_SEPARATOR.join(
        f"{tag}:{position}" for tag, position in modification_positions(peptide)
    )


def peptide_terminus_state(peptide: ModifiedPeptide) -> int:
    at_n_terminus = peptide.prefix == TerminusSymbols.PROTEIN_TERMINUS
    at_c_terminus = peptide.suffix == TerminusSymbols.PROTEIN_TERMINUS

    if at_n_terminus and at_c_terminus:
        return TERMINUS_STATE_PROTEIN_N_AND_C
    if at_n_terminus:
        return TERMINUS_STATE_PROTEIN_N
    if at_c_terminus:
        return TERMINUS_STATE_PROTEIN_C
    return TERMINUS_STATE_NONE


class UniqueSequences:
    """Assigns consecutive ids to combinations of clean sequence and modification description."""

    def __init__(self, first_id: int = 1):
        self._ids: dict[tuple[str, str], int] = {}
        self._next_id = first_id

    def __len__(self):
        return len(self._ids)

    def get_id(self, sequence: str, mod_description: str) -> tuple[int, bool]:
        """Get the id of a sequence, adding it if it is new.

        Returns
        -------
        tuple
            The unique sequence id and whether the sequence was already known.
        """
        key = (sequence, mod_description)
        if key in self._ids:
            return self._ids[key], True

        self._ids[key] = self._next_id
        self._next_id += 1
        return self._ids[key], False


class SequenceInfo:
    """Collects the unique sequence tables of the records written to a synopsis file."""

    def __init__(self):
        self.unique_sequences = UniqueSequences()

        self._result_to_seq = []
        self._seq_info = []
        self._mod_details = []
        self._seq_to_protein = []
        self._seq_protein_pairs = set()

    def add(self, record, result_id: int) -> int:
        """Add a record written with `result_id`, returning its unique sequence id."""
        peptide = record.modified_peptide
        mod_description = modification_description(peptide)

        unique_seq_id, is_known = self.unique_sequences.get_id(
            peptide.sequence, mod_description
        )
        self._result_to_seq.append(
            {
                ResultToSeqMapCols.RESULT_ID: result_id,
                ResultToSeqMapCols.UNIQUE_SEQ_ID: unique_seq_id,
            }
        )

        if not is_known:
            self._seq_info.append(
                {
                    SeqInfoCols.UNIQUE_SEQ_ID: unique_seq_id,
                    SeqInfoCols.MOD_COUNT: len(peptide.modifications),
                    SeqInfoCols.MOD_DESCRIPTION: mod_description,
                    SeqInfoCols.MONOISOTOPIC_MASS: round(record.monoisotopic_mass, 5),
                }
            )
            self._mod_details.extend(
                {
                    ModDetailsCols.UNIQUE_SEQ_ID: unique_seq_id,
                    ModDetailsCols.MASS_CORRECTION_TAG: tag,
                    ModDetailsCols.POSITION: position,
                }
                for tag, position in modification_positions(peptide)
            )

        if (unique_seq_id, record.protein) not in self._seq_protein_pairs:
            self._seq_protein_pairs.add((unique_seq_id, record.protein))
            self._seq_to_protein.append(
                {
                    SeqToProteinMapCols.UNIQUE_SEQ_ID: unique_seq_id,
                    SeqToProteinMapCols.CLEAVAGE_STATE: min(record.ntt, 2),
                    SeqToProteinMapCols.TERMINUS_STATE: peptide_terminus_state(peptide),
                    SeqToProteinMapCols.PROTEIN_NAME: record.protein,
                    # not reported by the supported search tools
                    SeqToProteinMapCols.PROTEIN_EXPECTATION_VALUE: "",
                    SeqToProteinMapCols.PROTEIN_INTENSITY: "",
                }
            )

        return unique_seq_id

    def to_dfs(self) -> dict[str, pd.DataFrame]:
        """The four tables, keyed by their file name suffix."""
        return {
            RESULT_TO_SEQ_MAP_SUFFIX: pd.DataFrame(
                self._result_to_seq, columns=ResultToSeqMapCols.get_values()
            ),
            SEQ_INFO_SUFFIX: pd.DataFrame(
                self._seq_info, columns=SeqInfoCols.get_values()
            ),
            MOD_DETAILS_SUFFIX: pd.DataFrame(
                self._mod_details, columns=ModDetailsCols.get_values()
            ),
            SEQ_TO_PROTEIN_MAP_SUFFIX: pd.DataFrame(
                self._seq_to_protein, columns=SeqToProteinMapCols.get_values()
            ),
        }

    def write(self, base_path: str) -> dict[str, tuple[str, int]]:
        """Write the tables to `<base_path>_<suffix>.txt`.

        Returns
        -------
        dict
            Suffix to path and number of rows of each written file.

        Raises
        ------
        OutputWriteFailureError
            If a file can not be written.
        """
        written = {}
        for suffix, df in self.to_dfs().items():
            path = f"{base_path}_{suffix}.txt"
            try:
                df.to_csv(path, sep="\t", index=False)
            except OSError as e:
                raise OutputWriteFailureError(f"{path}: {e}") from e
            written[suffix] = (path, len(df))

        logger.info(
            f"Wrote {len(self.unique_sequences):,} unique sequences of {len(self._result_to_seq):,} results to {base_path}_*"
        )
        return written
