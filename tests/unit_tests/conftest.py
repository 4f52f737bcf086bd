import os

import pytest

from alphapsm.constants.keys import ModificationTypes
from alphapsm.modification.definition import ModificationDefinition
from alphapsm.modification.registry import ModificationRegistry
from alphapsm.parsers.base import SearchResult
from alphapsm.peptide import ModifiedPeptide, split_prefix_suffix

OXIDATION = ModificationDefinition(
    "*", 15.994915, "M", ModificationTypes.DYNAMIC, "Plus1Oxy"
)
ITRAQ = ModificationDefinition("#", 144.102063, "<", ModificationTypes.DYNAMIC, "itrac")
PHOSPHO = ModificationDefinition(
    "@", 79.966331, "STY", ModificationTypes.DYNAMIC, "Phosph"
)
CARBAMIDOMETHYL = ModificationDefinition(
    "-", 57.021464, "C", ModificationTypes.STATIC, "IodoAcet"
)

MSGF_HEADER = [
    "#SpecFile",
    "SpecID",
    "ScanNum",
    "FragMethod",
    "Precursor",
    "IsotopeError",
    "PrecursorError(ppm)",
    "Charge",
    "Peptide",
    "Protein",
    "DeNovoScore",
    "MSGFScore",
    "SpecEValue",
    "EValue",
    "QValue",
    "PepQValue",
]


@pytest.fixture
def registry():
    """Registry with oxidation, iTRAQ, phosphorylation and static carbamidomethylation."""
    return ModificationRegistry([OXIDATION, ITRAQ, PHOSPHO, CARBAMIDOMETHYL])


def write_lines(path, lines: list[str]) -> str:
    """Write tab separated result lines, returning the path as string."""
    os.makedirs(os.path.dirname(str(path)), exist_ok=True)
    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")
    return str(path)


def inspect_line(
    scan: int,
    annotation: str,
    total_prm_score: float = 60.0,
    f_score: float = 0.5,
    p_value: float = 0.01,
    charge: int = 2,
    protein: str = "Prot1 description",
    precursor_mz: float = 500.0,
    precursor_error: float = 0.01,
    spectrum_file: str = "Dataset.mzXML",
) -> str:
    """A line of an InSpecT result file with all 22 columns."""
    fields = [
        spectrum_file,
        scan,
        annotation,
        protein,
        charge,
        -0.5,  # MQScore
        8,  # Length
        total_prm_score,
        1.2,  # MedianPRMScore
        0.5,  # FractionY
        0.4,  # FractionB
        0.3,  # Intensity
        2,  # NTT
        p_value,
        f_score,
        0.0,  # DeltaScore
        0.0,  # DeltaScoreOther
        1,  # RecordNumber
        100,  # DBFilePos
        200,  # SpecFilePos
        precursor_mz,
        precursor_error,
    ]
    return "\t".join(str(field) for field in fields)


def msgf_line(
    scan: int,
    peptide: str,
    spec_e_value: float = 1e-12,
    e_value: float = 1e-6,
    msgf_score: int = 100,
    charge: int = 2,
    protein: str = "Prot1(pre=K,post=A)",
    precursor_mz: float = 500.0,
) -> str:
    """A line of an MS-GF+ tsv file matching `MSGF_HEADER`."""
    fields = [
        "Dataset.mzML",
        f"controllerType=0 controllerNumber=1 scan={scan}",
        scan,
        "HCD",
        precursor_mz,
        0,
        1.5,
        charge,
        peptide,
        protein,
        120,
        msgf_score,
        spec_e_value,
        e_value,
        0.0,
        0.0,
    ]
    return "\t".join(str(field) for field in fields)


def make_record(
    scan: int = 1,
    charge: int = 2,
    peptide: str = "K.PEPTIDE.R",
    protein: str = "Prot1",
    **scores: float,
) -> SearchResult:
    """A search result of an unmodified peptide with the given scores."""
    prefix, sequence, suffix = split_prefix_suffix(peptide)
    return SearchResult(
        scan=scan,
        charge=charge,
        peptide=peptide,
        protein=protein,
        modified_peptide=ModifiedPeptide(prefix, sequence, suffix),
        scores=dict(scores),
    )
