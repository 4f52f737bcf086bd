"""This module provides unit tests for alphapsm.protein_mapping."""

from unittest.mock import patch

import pandas as pd
import pytest

from alphapsm.constants.keys import ProteinMapCols
from alphapsm.exceptions import OutputWriteFailureError
from alphapsm.protein_mapping import (
    clean_sequence,
    is_reversed_protein,
    load_protein_sequences,
    map_peptides_to_proteins,
    write_protein_map,
)

SEQUENCES = {"Prot1": "MKAMPEPTIDERAAPEPTIDEK", "Prot2": "GGGTIDEK"}


@pytest.mark.parametrize(
    "protein,expected",
    [
        ("Reversed_Prot1", True),
        ("REV_Prot1", True),
        ("XXX.Prot1", True),
        ("scrambled_Prot1", True),
        ("Prot1:reversed", True),
        ("Prot1", False),
        ("Prot_rev_1", False),
    ],
)
def test_is_reversed_protein(protein, expected):
    """Test decoy protein names are recognized case-insensitive."""
    assert is_reversed_protein(protein) is expected


@pytest.mark.parametrize(
    "peptide,expected",
    [
        ("K.EPEPT*IDE.R", "EPEPTIDE"),
        ("-.#PEP.-", "PEP"),
        ("PEPTIDE", "PEPTIDE"),
    ],
)
def test_clean_sequence(peptide, expected):
    """Test flanking residues and modification symbols are removed."""
    assert clean_sequence(peptide) == expected


@patch("alphapsm.protein_mapping.logger")
def test_map_peptides_to_proteins(mock_logger):
    """Test the first occurrence is mapped once per pair and unknown decoys are skipped silently."""
    # given
    pairs = [
        ("A.M*PEPTIDE.R", "Prot1"),
        ("A.M*PEPTIDE.R", "Prot1"),
        ("K.PEPTIDEK.-", "Prot1"),
        ("G.TIDEK.-", "Prot2"),
        ("K.AAAA.R", "Reversed_Prot1"),
        ("K.WWWW.R", "Prot2"),
    ]

    # when
    protein_map_df = map_peptides_to_proteins(pairs, SEQUENCES)

    # then
    pd.testing.assert_frame_equal(
        protein_map_df,
        pd.DataFrame(
            {
                ProteinMapCols.PEPTIDE: ["A.M*PEPTIDE.R", "K.PEPTIDEK.-", "G.TIDEK.-"],
                ProteinMapCols.PROTEIN: ["Prot1", "Prot1", "Prot2"],
                ProteinMapCols.RESIDUE_START: [4, 15, 4],
                ProteinMapCols.RESIDUE_END: [11, 22, 8],
            }
        ),
    )
    mock_logger.warning.assert_called_once_with(
        "1 peptide(s) could not be mapped to their protein"
    )


def test_map_peptides_to_proteins_empty():
    """Test an empty synopsis results in an empty map with all columns."""
    protein_map_df = map_peptides_to_proteins([], SEQUENCES)

    assert list(protein_map_df.columns) == ProteinMapCols.get_values()
    assert len(protein_map_df) == 0


@patch("alphapsm.protein_mapping.fasta.load_fasta_list_as_protein_df")
def test_load_protein_sequences(mock_load_fasta):
    """Test proteins are accessible by id and by full name."""
    # given
    mock_load_fasta.return_value = pd.DataFrame(
        {
            "protein_id": ["P12345"],
            "full_name": ["sp|P12345|PROT1_HUMAN"],
            "sequence": ["MKAMPEPTIDER"],
        }
    )

    # when
    sequences = load_protein_sequences(["proteins.fasta"])

    # then
    mock_load_fasta.assert_called_once_with(["proteins.fasta"])
    assert sequences == {
        "sp|P12345|PROT1_HUMAN": "MKAMPEPTIDER",
        "P12345": "MKAMPEPTIDER",
    }


def test_write_protein_map(tmp_path):
    """Test the map is written tab separated without index."""
    # given
    path = tmp_path / "Dataset_msgfplus_syn_PepToProtMap.txt"
    protein_map_df = map_peptides_to_proteins([("G.TIDEK.-", "Prot2")], SEQUENCES)

    # when
    write_protein_map(protein_map_df, str(path))

    # then
    assert path.read_text().splitlines() == [
        "Peptide\tProtein\tResidue_Start\tResidue_End",
        "G.TIDEK.-\tProt2\t4\t8",
    ]


def test_write_protein_map_failure(tmp_path):
    """Test write failures raise an output write failure."""
    with pytest.raises(OutputWriteFailureError):
        write_protein_map(map_peptides_to_proteins([], SEQUENCES), str(tmp_path))
