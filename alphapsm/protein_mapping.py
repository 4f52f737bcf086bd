"""Mapping of synopsis peptides to their residue positions in the protein sequences of a FASTA file."""

import logging

import pandas as pd
from alphabase.protein import fasta

from alphapsm.constants.keys import ProteinMapCols
from alphapsm.exceptions import OutputWriteFailureError
from alphapsm.peptide import split_prefix_suffix

logger = logging.getLogger()

# decoy proteins of target-decoy searches, compared case-insensitive
REVERSED_PROTEIN_PREFIXES = ("reversed_", "rev_", "scrambled_", "xxx_", "xxx.")
REVERSED_PROTEIN_SUFFIXES = (":reversed",)


def is_reversed_protein(protein: str) -> bool:
    """Check whether a protein name belongs to a reversed or scrambled decoy protein."""
    name = protein.lower()
    return name.startswith(REVERSED_PROTEIN_PREFIXES) or name.endswith(
        REVERSED_PROTEIN_SUFFIXES
    )


def clean_sequence(peptide: str) -> str:
    """Residues of a canonical peptide, e.g. `EPEPTIDE` for `K.EPEPT*IDE.R`."""
    _, sequence, _ = split_prefix_suffix(peptide)
    return "".join(residue for residue in sequence if residue.isupper())


def load_protein_sequences(fasta_paths: list[str]) -> dict[str, str]:
    """Load the protein sequences of FASTA files, accessible by protein id and by the full name of the header.

    Parameters
    ----------
    fasta_paths : list of str
        FASTA files, later files win for duplicate names.

    Returns
    -------
    dict
        Protein name to sequence.
    """
    protein_df = fasta.load_fasta_list_as_protein_df(fasta_paths)

    sequences = dict(zip(protein_df["full_name"], protein_df["sequence"], strict=True))
    sequences.update(
        zip(protein_df["protein_id"], protein_df["sequence"], strict=True)
    )

    logger.info(f"Loaded {len(protein_df):,} protein sequences from {len(fasta_paths)} FASTA file(s)")
    return sequences


def map_peptides_to_proteins(
    peptide_protein_pairs, sequences: dict[str, str]
) -> pd.DataFrame:
    """Find the position of each peptide in its protein.

    Parameters
    ----------
    peptide_protein_pairs : iterable of tuple
        Canonical peptide and protein name pairs, duplicates are mapped once.

    sequences : dict
        Protein name to sequence, see `load_protein_sequences`.

    Returns
    -------
    pd.DataFrame
        Columns `ProteinMapCols`, one row per pair with 1-based first and last residue of the first occurrence.
        Pairs whose protein is unknown or does not contain the peptide are skipped.
    """
    rows = []
    n_unmapped = 0
    seen = set()
    for peptide, protein in peptide_protein_pairs:
        if (peptide, protein) in seen:
            continue
        seen.add((peptide, protein))

        residues = clean_sequence(peptide)
        protein_sequence = sequences.get(protein, "")
        start = protein_sequence.find(residues) if residues else -1
        if start < 0:
            # decoys are not part of the FASTA file
            if not is_reversed_protein(protein):
                n_unmapped += 1
                logger.debug(f"Peptide {peptide} not found in protein {protein}")
            continue

        rows.append(
            {
                ProteinMapCols.PEPTIDE: peptide,
                ProteinMapCols.PROTEIN: protein,
                ProteinMapCols.RESIDUE_START: start + 1,
                ProteinMapCols.RESIDUE_END: start + len(residues),
            }
        )

    if n_unmapped:
        logger.warning(f"{n_unmapped} peptide(s) could not be mapped to their protein")

    return pd.DataFrame(rows, columns=ProteinMapCols.get_values())


def write_protein_map(protein_map_df: pd.DataFrame, path: str) -> None:
    try:
        protein_map_df.to_csv(path, sep="\t", index=False)
    except OSError as e:
        raise OutputWriteFailureError(f"{path}: {e}") from e
    logger.info(f"Wrote {len(protein_map_df)} peptide to protein mappings to {path}")
