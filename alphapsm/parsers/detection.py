"""Detection of the search tool that created a result file."""

import logging
import os

from alphapsm.exceptions import InputFileNotFoundError, UnknownSearchToolError
from alphapsm.parsers import PARSERS
from alphapsm.parsers.base import looks_like_header
from alphapsm.parsers.inspect import InspectParser

logger = logging.getLogger()


def get_parser_class(search_tool: str):
    """Parser class of a search tool name, case-insensitive."""
    try:
        return PARSERS[search_tool.lower()]
    except KeyError:
        raise UnknownSearchToolError(
            f"Unknown search tool '{search_tool}', use one of {', '.join(PARSERS)}"
        ) from None


def detect_tool(path: str) -> str:
    """Detect the search tool from the file name, falling back to the first line of the file.

    Parameters
    ----------
    path : str
        Result file.

    Returns
    -------
    str
        Name of the search tool, a key of `PARSERS`.

    Raises
    ------
    InputFileNotFoundError
        If the file does not exist.

    UnknownSearchToolError
        If neither the file name nor the first line match a known search tool.
    """
    if not os.path.isfile(path):
        raise InputFileNotFoundError(path)

    file_name = os.path.basename(path).lower()
    for tool_name, parser in PARSERS.items():
        if file_name.endswith(parser.file_suffixes):
            logger.info(f"Detected {tool_name} results from the file name {file_name}")
            return tool_name

    with open(path, encoding="utf-8", errors="replace") as f:
        first_line = f.readline().rstrip("\r\n")
    fields = first_line.split("\t")

    if looks_like_header(fields):
        for tool_name, parser in PARSERS.items():
            if parser.matches_header(fields):
                logger.info(f"Detected {tool_name} results from the header of {file_name}")
                return tool_name
    elif len(fields) in (len(InspectParser.columns), InspectParser.min_column_count):
        # InSpecT is the only tool writing result files without a header
        logger.info(f"Detected {InspectParser.tool_name} results from the column count of {file_name}")
        return InspectParser.tool_name

    raise UnknownSearchToolError(path)
