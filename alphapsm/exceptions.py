"""Module containing custom exceptions."""


class CustomError(Exception):
    """Custom alphaPSM error class."""

    _error_code = ""
    _msg = ""
    _detail_msg = ""
    _user_msg = ""

    @property
    def error_code(self):
        return self._error_code

    @property
    def msg(self):
        return self._msg

    @property
    def detail_msg(self):
        return self._detail_msg

    def __init__(self, msg: str = ""):
        self._user_msg = msg

        super().__init__(self._msg)

    def __str__(self):
        return (
            f"{self._error_code}: {self._msg}\n'{self._user_msg}'\n{self._detail_msg}"
        )


class BusinessError(CustomError):
    """Custom error class for 'business' errors.

    A 'business' error is an error that is caused during processing the input (data, configuration, ...) and not by a
    malfunction in alphaPSM.
    """


class UserError(CustomError):
    """Custom error class for 'user' errors.

    A 'user' error is an error that is caused by the incompatible user input (data, configuration, ...) and not by a
    malfunction in alphaPSM.
    """


class InputFileNotFoundError(UserError):
    """Raise when the search result file does not exist."""

    _error_code = "INPUT_FILE_NOT_FOUND"

    _msg = "Search result file not found."


class ParameterFileNotFoundError(UserError):
    """Raise when a search parameter file or modification definitions file does not exist."""

    _error_code = "PARAMETER_FILE_NOT_FOUND"

    _msg = "Parameter file not found."


class UnknownSearchToolError(UserError):
    """Raise when the search tool of an input file can not be determined."""

    _error_code = "UNKNOWN_SEARCH_TOOL"

    _msg = "Could not determine the search tool that created the input file."

    _detail_msg = """Supported search tools are determined from the file name suffix and the header line.
    Rename the file or pass the search tool explicitly (CLI: '--tool', config: 'search_tool')."""


class OutputWriteFailureError(BusinessError):
    """Raise when writing an output file fails.

    Partial output may be left on disk, callers are responsible for discarding it.
    """

    _error_code = "OUTPUT_WRITE_FAILURE"

    _msg = "Failed to write output file."


class MalformedInputLineError(BusinessError):
    """Raise when a line of a search result file can not be parsed."""

    _error_code = "MALFORMED_INPUT_LINE"

    _msg = "Malformed input line."

    def __init__(self, msg: str = "", line_number: int = 0):
        super().__init__(msg)
        self.line_number = line_number

    def __str__(self):
        return f"Line {self.line_number}: {self._user_msg}"


class UnresolvedModificationError(BusinessError):
    """Raise when a modification token does not match any known modification definition."""

    _error_code = "UNRESOLVED_MODIFICATION"

    _msg = "Modification could not be resolved."

    def __init__(self, token: str, residue: str | None = None):
        super().__init__(str(token))
        self.token = token
        self.residue = residue

    def __str__(self):
        location = f" on residue {self.residue}" if self.residue else ""
        return f"Unresolved modification '{self.token}'{location}"


class ConfigError(BusinessError):
    """Raise when something is wrong with the provided configuration."""

    _error_code = "CONFIG_ERROR"

    _msg = "Malformed or invalid configuration."
    _key = ""
    _config_name = ""
    _detail_msg = ""

    def __init__(
        self,
        key: str = "",
        value: str = "",
        config_name: str = "",
        detail_msg: str = "",
    ):
        self._key = key
        self._value = value
        self._config_name = config_name
        self._detail_msg = detail_msg


class KeyAddedConfigError(ConfigError):
    """Raise when a key should be added to a config."""

    def __init__(self, key: str, value: str, config_name: str):
        super().__init__(key, value, config_name)
        self._detail_msg = (
            f"Defining new keys is not allowed when updating a config: "
            f"key='{self._key}', value='{self._value}', config_name='{self._config_name}'"
        )


class TypeMismatchConfigError(ConfigError):
    """Raise when the type of a value does not match the default type."""

    def __init__(self, key: str, value: str, config_name: str, extra_msg: str):
        super().__init__(key, value, config_name)
        self._detail_msg = (
            f"Types of values must match default config: "
            f"key='{self._key}', value='{self._value}', config_name='{self._config_name}', types='{extra_msg}'"
        )
