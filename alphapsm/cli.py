#!python
"""CLI for alphaPSM.

The CLI only collects the parameters, processing behaves the same from the CLI or a jupyter notebook.
"""

import argparse
import json
import logging
import os
import re
from pathlib import Path

import yaml

from alphapsm import __version__
from alphapsm.constants.keys import ConfigKeys, SearchTools

logger = logging.getLogger()

EXIT_CODE_USER_ERROR = 1
EXIT_CODE_WRONG_CLI_PARAM = 126
EXIT_CODE_UNKNOWN_ERROR = 127

epilog = "Parameters passed via CLI will overwrite parameters from config file (except for '--file': will be merged)."

parser = argparse.ArgumentParser(
    description="Convert peptide search results into first hits and synopsis files with alphaPSM",
    epilog=epilog,
)
parser.add_argument(
    "--version",
    "-v",
    action="store_true",
    help="Print version and exit",
)
parser.add_argument(
    "--output",
    "--output-directory",
    "-o",
    type=str,
    help="Output directory. Defaults to the directory of each input file.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--file",
    "-f",
    type=str,
    help="Path to a search result file. Can be passed multiple times.",
    action="append",
    default=[],
)
parser.add_argument(
    "--directory",
    "-d",
    type=str,
    help="Directory containing search result files.",
    action="append",
    default=[],
)
parser.add_argument(
    "--regex",
    "-r",
    type=str,
    help="Regex to match search result files in 'directory'.",
    nargs="?",
    default=".*",
)
parser.add_argument(
    "--tool",
    "--search-tool",
    "-t",
    type=str,
    choices=SearchTools.get_values(),
    help="Search tool that created the input files. Detected from file name and header if not given.",
    default=None,
)
parser.add_argument(
    "--parameter-file",
    "-p",
    type=str,
    help="Search tool parameter file with the modifications of the search.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--mod-defs",
    "-m",
    type=str,
    help="Tab separated modification definitions file (symbol, mass, residues, type, mass correction tag).",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--fasta",
    "--fasta-path",
    help="Path to fasta file used to create the peptide to protein map. Can be passed multiple times.",
    action="append",
    default=[],
)
parser.add_argument(
    "--config",
    "-c",
    type=str,
    help="Path to config yaml file which will be used to update the default config.",
    nargs="?",
    default=None,
)
parser.add_argument(
    "--config-dict",
    type=str,
    help="Python dictionary which will be used to update the default config. Keys and string values need to be surrounded by "
    'escaped double quotes, e.g. "{\\"key1\\": \\"value1\\"}".',
    nargs="?",
    default="{}",
)
parser.add_argument(
    "--log-level",
    type=str,
    choices=["DEBUG", "INFO", "PROGRESS", "WARNING", "ERROR"],
    help="Log level of console and log file.",
    default="INFO",
)


def _recursive_update(full_dict: dict, update_dict: dict):
    """Recursively update a dict with a second dict. The dict is updated inplace."""
    for key, value in update_dict.items():
        if key in full_dict and isinstance(value, dict):
            _recursive_update(full_dict[key], update_dict[key])
        else:
            full_dict[key] = value


def _get_config_from_args(
    args: argparse.Namespace,
) -> tuple[dict, str | None, str | None]:
    """Parse config file from `args.config` if given and update with optional JSON string `args.config_dict`."""

    config = {}
    if args.config is not None:
        with open(args.config) as f:
            config = yaml.safe_load(f) or {}

    if args.config_dict:
        try:
            _recursive_update(config, json.loads(args.config_dict))
        except json.JSONDecodeError as e:
            print(f"Could not parse config update: {e}")

    return config, args.config, args.config_dict


def _get_from_args_or_config(
    args: argparse.Namespace, config: dict, *, args_key: str, config_key: str
) -> str:
    """Get a value from command line arguments (key: `args_key`) or config file (key: `config_key`), the former taking precedence."""
    value_from_args = args.__dict__.get(args_key)
    return value_from_args if value_from_args is not None else config.get(config_key)


def _get_input_paths_from_args_and_config(
    args: argparse.Namespace, config: dict
) -> list:
    """Combine the input files of config and command line, including all files of the given directories, filtered by `args.regex`."""

    input_paths = list(config.get(ConfigKeys.INPUT_PATHS, []))
    input_paths += args.file

    for directory in args.directory:
        input_paths += [
            os.path.join(directory, f)
            for f in sorted(os.listdir(directory))
            if os.path.isfile(os.path.join(directory, f))
        ]

    len_before = len(input_paths)
    input_paths = [
        f for f in input_paths if re.search(args.regex, os.path.basename(f)) is not None
    ]

    if len_removed := len_before - len(input_paths):
        print(
            f"Ignoring {len_removed} / {len_before} file(s) from arguments list due to --regex."
        )

    return input_paths


def run(*args, **kwargs):
    args, unknown = parser.parse_known_args()

    if unknown:
        print(f"Unknown arguments: {unknown}")
        parser.print_help()
        return EXIT_CODE_WRONG_CLI_PARAM

    if args.version:
        print(f"{__version__}")
        return

    # load modules only here to speed up -v and -h commands
    from alphapsm.exceptions import CustomError
    from alphapsm.processor import process_files
    from alphapsm.reporting import reporting
    from alphapsm.reporting.logging import print_environment, print_logo
    from alphapsm.workflow.config import load_config

    user_config, config_file_path, extra_config_dict = _get_config_from_args(args)

    output_directory = _get_from_args_or_config(
        args, user_config, args_key="output", config_key=ConfigKeys.OUTPUT_DIRECTORY
    )

    input_paths = _get_input_paths_from_args_and_config(args, user_config)
    if not input_paths:
        parser.print_help()

        print("No input files specified. Please do so via CL-argument or config.")
        return EXIT_CODE_WRONG_CLI_PARAM

    reporting.init_logging(
        output_directory, log_level=logging.getLevelName(args.log_level)
    )
    print_logo()
    print_environment()

    if output_directory is not None:
        logger.info(
            f"Output directory: {Path(output_directory).absolute()}, cwd: {os.getcwd()}."
        )
    if config_file_path:
        logger.info(f"User provided config file: {config_file_path}.")
    if extra_config_dict:
        logger.info(f"User provided config dict: {extra_config_dict}.")

    cli_params_config = {
        ConfigKeys.INPUT_PATHS: input_paths,
        **(
            {ConfigKeys.OUTPUT_DIRECTORY: output_directory}
            if output_directory is not None
            else {}
        ),
        **({ConfigKeys.SEARCH_TOOL: args.tool} if args.tool is not None else {}),
        **(
            {ConfigKeys.PARAMETER_FILE: args.parameter_file}
            if args.parameter_file is not None
            else {}
        ),
        **(
            {ConfigKeys.MODIFICATION_DEFINITIONS_FILE: args.mod_defs}
            if args.mod_defs is not None
            else {}
        ),
        **({ConfigKeys.FASTA_PATHS: args.fasta} if args.fasta else {}),
    }

    try:
        config = load_config(user_config, cli_params_config)
        results = process_files(config[ConfigKeys.INPUT_PATHS], config)

    except Exception as e:
        if isinstance(e, CustomError):
            exit_code = EXIT_CODE_USER_ERROR
        else:
            import traceback

            logger.info(traceback.format_exc())
            exit_code = EXIT_CODE_UNKNOWN_ERROR

        logger.error(e)
        return exit_code

    if failed := [result for result in results if not result.success]:
        for result in failed:
            logger.error(f"{result.input_path}: {result.message}")
        return EXIT_CODE_USER_ERROR


if __name__ == "__main__" and os.getenv("RUN_MAIN") == "1":
    run()
