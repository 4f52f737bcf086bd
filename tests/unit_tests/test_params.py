"""This module provides unit tests for alphapsm.modification.params."""

import pytest
from conftest import OXIDATION

from alphapsm.constants.keys import ModificationTypes
from alphapsm.exceptions import ParameterFileNotFoundError
from alphapsm.modification.params import (
    SearchModification,
    read_inspect_parameter_file,
    read_msgf_parameter_file,
    register_search_modifications,
)
from alphapsm.modification.registry import ModificationRegistry


def test_read_inspect_parameter_file(tmp_path):
    """Test reading the modifications of an InSpecT parameter file."""
    # given
    path = tmp_path / "inspect_params.txt"
    path.write_text(
        "spectra,Dataset.mzXML\n"
        "mods,2\n"
        "mod,80,STY,opt,phosphorylation\n"
        "mod,+57.0215,C\n"
        "mod,15.9949,M,opt\n"
        "mod,42.0106,*,nterminal,acetylation  # N-terminal acetylation\n"
    )

    # when
    modifications = read_inspect_parameter_file(str(path))

    # then
    assert modifications == [
        SearchModification(79.966331, "STY", ModificationTypes.DYNAMIC, "phos"),
        SearchModification(57.0215, "C", ModificationTypes.STATIC, "UnnamedMod1"),
        SearchModification(15.9949, "M", ModificationTypes.DYNAMIC, "UnnamedMod2"),
        SearchModification(42.0106, "<", ModificationTypes.DYNAMIC, "acet"),
    ]


def test_read_msgf_parameter_file(tmp_path):
    """Test reading MS-GF+ modifications given by mass or formula."""
    # given
    path = tmp_path / "MSGFPlus_Mods.txt"
    path.write_text(
        "NumMods=2\n"
        "# static carbamidomethylation\n"
        "C2H3N1O1,C,fix,any,Carbamidomethyl\n"
        "DynamicMod=O1,M,opt,any,Oxidation\n"
        "StaticMod=None\n"
        "42.010565,*,opt,Prot-N-term,Acetyl\n"
        "229.162932,*,fix,N-term,TMT6plex\n"
        "0.984016,NQ,opt,somewhere,Deamidated\n"
    )

    # when
    modifications = read_msgf_parameter_file(str(path))

    # then
    assert len(modifications) == 4
    assert modifications[0].mass == pytest.approx(57.021464, abs=1e-5)
    assert modifications[0].modification_type == ModificationTypes.STATIC
    assert modifications[1].mass == pytest.approx(15.994915, abs=1e-5)
    assert modifications[1].name == "Oxidation"
    assert modifications[2].target_residues == "["
    assert modifications[2].modification_type == ModificationTypes.DYNAMIC
    assert modifications[3].target_residues == "<"
    assert (
        modifications[3].modification_type
        == ModificationTypes.TERMINAL_PEPTIDE_STATIC
    )


def test_read_msgf_parameter_file_moda_static_modification(tmp_path):
    """Test the `ADD=` lines of MODa parameter files."""
    # given
    path = tmp_path / "moda_params.txt"
    path.write_text("Spectra=Dataset.mgf\nADD=C, 57.021464\nADD=K, 0\n")

    # when
    modifications = read_msgf_parameter_file(str(path))

    # then
    assert modifications == [
        SearchModification(57.021464, "C", ModificationTypes.STATIC, "IodoAcet")
    ]


@pytest.mark.parametrize(
    "read_function", [read_inspect_parameter_file, read_msgf_parameter_file]
)
def test_read_parameter_file_missing(tmp_path, read_function):
    """Test missing parameter files raise."""
    with pytest.raises(ParameterFileNotFoundError):
        read_function(str(tmp_path / "missing.txt"))


def test_register_search_modifications():
    """Test static modifications get no symbol and dynamic modifications get the next free one."""
    # given
    registry = ModificationRegistry()
    modifications = [
        SearchModification(57.021464, "C", ModificationTypes.STATIC, "IodoAcet"),
        SearchModification(15.994915, "M", ModificationTypes.DYNAMIC, "Plus1Oxy"),
        SearchModification(79.966331, "STY", ModificationTypes.DYNAMIC, "Phosph"),
    ]

    # when
    registered = register_search_modifications(registry, modifications)

    # then
    assert [d.symbol for d in registered] == ["-", "*", "#"]
    assert registry.static_definitions == (registered[0],)


def test_register_search_modifications_reuses_symbol():
    """Test a dynamic modification already in the registry keeps its symbol."""
    # given
    registry = ModificationRegistry([OXIDATION])
    modifications = [
        SearchModification(15.9949, "W", ModificationTypes.DYNAMIC, "Plus1Oxy")
    ]

    # when
    registered = register_search_modifications(registry, modifications)

    # then
    assert registered[0].symbol == "*"
    assert registered[0].target_residues == "MW"
    assert len(registry) == 1
