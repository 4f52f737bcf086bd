class ConstantsClass(type):
    """A metaclass for classes that should only contain string constants."""

    def __setattr__(self, name, value):
        raise TypeError("Constants class cannot be modified")

    def get_values(cls):
        """Get all user-defined string values of the class."""
        return [
            value
            for key, value in cls.__dict__.items()
            if not key.startswith("__") and isinstance(value, str)
        ]


class ConfigKeys(metaclass=ConstantsClass):
    """String constants for accessing the config."""

    SEARCH_TOOL = "search_tool"
    OUTPUT_DIRECTORY = "output_directory"
    INPUT_PATHS = "input_paths"
    PARAMETER_FILE = "parameter_file"
    MODIFICATION_DEFINITIONS_FILE = "modification_definitions_file"
    FASTA_PATHS = "fasta_paths"

    OUTPUT = "output"
    MODIFICATION = "modification"
    PROCESSING = "processing"
    THRESHOLDS = "thresholds"


class SearchTools(metaclass=ConstantsClass):
    """Names of the supported search tools."""

    INSPECT = "inspect"
    MSGFPLUS = "msgfplus"
    MSPATHFINDER = "mspathfinder"
    MODA = "moda"


class OutputTypes(metaclass=ConstantsClass):
    """Output file types, used as file name suffix."""

    FIRST_HITS = "fht"
    SYNOPSIS = "syn"


class ModificationTypes(metaclass=ConstantsClass):
    """Single letter codes of the modification types in the definitions table."""

    DYNAMIC = "D"
    STATIC = "S"
    TERMINAL_PEPTIDE_STATIC = "T"
    ISOTOPIC = "I"
    PROTEIN_TERMINUS_STATIC = "P"
    UNKNOWN = "?"


class TerminusState(metaclass=ConstantsClass):
    """Position of a residue or modification relative to the peptide and protein termini."""

    NONE = "none"
    PEPTIDE_N = "peptide_n"
    PEPTIDE_C = "peptide_c"
    PROTEIN_N = "protein_n"
    PROTEIN_C = "protein_c"


class TerminusSymbols(metaclass=ConstantsClass):
    """Symbols used in target residue lists and canonical peptide strings."""

    PEPTIDE_N = "<"
    PEPTIDE_C = ">"
    PROTEIN_N = "["
    PROTEIN_C = "]"
    # prefix or suffix residue of a peptide at the protein terminus
    PROTEIN_TERMINUS = "-"


class OutputCols(metaclass=ConstantsClass):
    """String constants for the columns present in every first hits and synopsis file."""

    RESULT_ID = "ResultID"
    SCAN = "Scan"
    PEPTIDE = "Peptide"
    PROTEIN = "Protein"
    CHARGE = "Charge"
    NTT = "NTT"
    MH = "MH"
    DEL_M = "DelM"
    DEL_M_PPM = "DelM_PPM"
    ISOTOPE_ERROR = "IsotopeError"


class ModSummaryCols(metaclass=ConstantsClass):
    """Columns of the modification summary file."""

    SYMBOL = "Modification_Symbol"
    MASS = "Modification_Mass"
    TARGET_RESIDUES = "Target_Residues"
    TYPE = "Modification_Type"
    MASS_CORRECTION_TAG = "Mass_Correction_Tag"
    OCCURRENCE_COUNT = "Occurrence_Count"


class ProteinMapCols(metaclass=ConstantsClass):
    """Columns of the peptide to protein map file."""

    PEPTIDE = "Peptide"
    PROTEIN = "Protein"
    RESIDUE_START = "Residue_Start"
    RESIDUE_END = "Residue_End"


class ResultToSeqMapCols(metaclass=ConstantsClass):
    """Columns of the result to unique sequence map file."""

    RESULT_ID = "Result_ID"
    UNIQUE_SEQ_ID = "Unique_Seq_ID"


class SeqInfoCols(metaclass=ConstantsClass):
    """Columns of the unique sequence info file."""

    UNIQUE_SEQ_ID = "Unique_Seq_ID"
    MOD_COUNT = "Mod_Count"
    MOD_DESCRIPTION = "Mod_Description"
    MONOISOTOPIC_MASS = "Monoisotopic_Mass"


class ModDetailsCols(metaclass=ConstantsClass):
    """Columns of the modification details file, one row per modification of a unique sequence."""

    UNIQUE_SEQ_ID = "Unique_Seq_ID"
    MASS_CORRECTION_TAG = "Mass_Correction_Tag"
    POSITION = "Position"


class SeqToProteinMapCols(metaclass=ConstantsClass):
    """Columns of the unique sequence to protein map file."""

    UNIQUE_SEQ_ID = "Unique_Seq_ID"
    CLEAVAGE_STATE = "Cleavage_State"
    TERMINUS_STATE = "Terminus_State"
    PROTEIN_NAME = "Protein_Name"
    PROTEIN_EXPECTATION_VALUE = "Protein_Expectation_Value_Log(e)"
    PROTEIN_INTENSITY = "Protein_Intensity_Log(I)"
