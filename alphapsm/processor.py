"""Processing of search result files into first hits, synopsis and modification summary files."""

import logging
import os
from contextlib import ExitStack
from copy import deepcopy
from dataclasses import dataclass, field

from alphapsm.cleavage import CleavageRule
from alphapsm.constants.keys import ConfigKeys, OutputTypes
from alphapsm.exceptions import (
    ConfigError,
    CustomError,
    InputFileNotFoundError,
    OutputWriteFailureError,
)
from alphapsm.modification.registry import (
    ModificationRegistry,
    load_modification_definitions,
)
from alphapsm.parsers.base import ResultParser, SearchResult
from alphapsm.parsers.detection import detect_tool, get_parser_class
from alphapsm.protein_mapping import (
    load_protein_sequences,
    map_peptides_to_proteins,
    write_protein_map,
)
from alphapsm.ranking import rank_scan_group
from alphapsm.reporting import reporting  # noqa: F401 registers logger.progress
from alphapsm.reporting.error_log import ErrorLog
from alphapsm.selection import MatchSelector, ScanGroupBuffer, Threshold
from alphapsm.sequence_info import SequenceInfo
from alphapsm.workflow.config import Config, load_config
from alphapsm.writer import CanonicalWriter

logger = logging.getLogger()

MOD_SUMMARY_SUFFIX = "ModSummary"
PROTEIN_MAP_SUFFIX = "PepToProtMap"


@dataclass
class ProcessingResult:
    """Outcome of processing a single search result file.

    `output_paths` and `n_written` are keyed by output type (`fht`, `syn`), `ModSummary`, `PepToProtMap`
    and the unique sequence suffixes (`ResultToSeqMap`, `SeqInfo`, `ModDetails`, `SeqToProteinMap`).
    """

    input_path: str
    search_tool: str = ""
    output_paths: dict[str, str] = field(default_factory=dict)
    n_lines: int = 0
    n_records: int = 0
    n_written: dict[str, int] = field(default_factory=dict)
    n_errors: int = 0
    error_log: str = ""
    aborted: bool = False
    success: bool = True
    message: str = ""


def output_base_name(input_path: str, parser_class: type[ResultParser]) -> str:
    """Base name of the output files, the input file name without the search tool suffix or extension."""
    file_name = os.path.basename(input_path)
    for suffix in parser_class.file_suffixes:
        if file_name.lower().endswith(suffix):
            return file_name[: -len(suffix)]
    return os.path.splitext(file_name)[0]


class _ProgressReporter:
    """Calls `callback(percent)` once the progress advanced by at least `interval` percent."""

    def __init__(self, callback, total_size: int, interval: float = 1.0):
        self.callback = callback
        self.total_size = total_size
        self.interval = interval
        self._last_reported = 0.0

    def update(self, position: int) -> None:
        if self.callback is None or self.total_size <= 0:
            return

        percent = min(100.0 * position / self.total_size, 100.0)
        if percent - self._last_reported >= self.interval:
            self._last_reported = percent
            self.callback(percent)

    def complete(self) -> None:
        if self.callback is not None:
            self._last_reported = 100.0
            self.callback(100.0)


class ResultsProcessor:
    """Converts search result files into the canonical first hits and synopsis files.

    Every file is processed with its own copy of the modification registry, so unknown modifications
    found in one file do not change the symbols used for the next file.

    Parameters
    ----------
    config : Config or dict, optional
        Processing configuration, the default config if None.
        A dict is used to update the default config.

    registry : ModificationRegistry, optional
        Base registry, copied for every file. Loaded from the modification definitions file of the config if None.

    progress_callback : callable, optional
        Called with the progress of the current file in percent.

    abort_event : threading.Event, optional
        Checked once per input line, processing stops once it is set.

    """

    def __init__(
        self,
        config: Config | dict | None = None,
        registry: ModificationRegistry | None = None,
        progress_callback=None,
        abort_event=None,
    ):
        if config is None or not isinstance(config, Config):
            config = load_config(config)
        self._config = config

        self.progress_callback = progress_callback
        self.abort_event = abort_event

        self.base_registry = (
            registry if registry is not None else self._load_base_registry()
        )

    @property
    def config(self) -> Config:
        return self._config

    def _load_base_registry(self) -> ModificationRegistry:
        modification_config = self._config[ConfigKeys.MODIFICATION]
        path = self._config[ConfigKeys.MODIFICATION_DEFINITIONS_FILE]

        return ModificationRegistry(
            load_modification_definitions(path) if path else (),
            mass_tolerance=modification_config["mass_tolerance"],
            name_length=modification_config["name_length"],
        )

    def _is_aborted(self) -> bool:
        return self.abort_event is not None and self.abort_event.is_set()

    def process_file(
        self,
        input_path: str,
        output_directory: str | None = None,
        search_tool: str | None = None,
        parameter_file: str | None = None,
    ) -> ProcessingResult:
        """Process a single search result file.

        If the abort event is set while reading, the file is closed with what was written so far and
        the result is marked as aborted. The scan group in progress is dropped. Search tools whose results
        are sorted by scan before ranking (MS-GF+, MSPathFinder, MODa) drop all buffered results, so their
        first hits and synopsis files only contain the header.

        Parameters
        ----------
        input_path : str
            Search result file.

        output_directory : str, optional
            Folder of the output files, the config value or the folder of the input file if None.

        search_tool : str, optional
            Search tool that created the file, the config value or detected from the file if None.

        parameter_file : str, optional
            Search tool parameter file with the modifications of the search, the config value if None.

        Returns
        -------
        ProcessingResult

        Raises
        ------
        InputFileNotFoundError
            If the input file does not exist.

        UnknownSearchToolError
            If the search tool is not given and can not be detected.

        OutputWriteFailureError
            If an output file can not be written.
        """
        if not os.path.isfile(input_path):
            raise InputFileNotFoundError(input_path)

        search_tool = (
            search_tool or self._config[ConfigKeys.SEARCH_TOOL] or detect_tool(input_path)
        )
        parser_class = get_parser_class(search_tool)
        search_tool = parser_class.tool_name

        processing_config = self._config[ConfigKeys.PROCESSING]
        error_log = ErrorLog(processing_config["error_log_max_length"])
        parser = parser_class(
            registry=deepcopy(self.base_registry),
            error_log=error_log,
            cleavage_rule=CleavageRule(
                processing_config["cleavage_residues"],
                processing_config["cleavage_exceptions"],
            ),
        )

        parameter_file = parameter_file or self._config[ConfigKeys.PARAMETER_FILE]
        if parameter_file:
            definitions = parser.load_parameter_file(parameter_file)
            logger.info(
                f"Loaded {len(definitions)} modification(s) from {parameter_file}"
            )

        output_directory = (
            output_directory
            or self._config[ConfigKeys.OUTPUT_DIRECTORY]
            or os.path.dirname(os.path.abspath(input_path))
        )
        base_name = os.path.join(
            output_directory,
            f"{output_base_name(input_path, parser_class)}_{search_tool}",
        )

        logger.progress(f"Processing {input_path} as {search_tool} results")
        result = ProcessingResult(input_path=input_path, search_tool=search_tool)

        output_config = self._config[ConfigKeys.OUTPUT]
        sequence_info = (
            SequenceInfo()
            if output_config["create_sequence_info"] and output_config["create_synopsis"]
            else None
        )

        synopsis_pairs = self._process_lines(
            parser, input_path, base_name, result, sequence_info
        )
        parser.report()

        if output_config["create_mod_summary"]:
            self._write_mod_summary(parser.registry, base_name, result)
        if sequence_info is not None:
            for suffix, (path, n_rows) in sequence_info.write(
                f"{base_name}_{OutputTypes.SYNOPSIS}"
            ).items():
                result.output_paths[suffix] = path
                result.n_written[suffix] = n_rows
        if output_config["create_protein_map"] and OutputTypes.SYNOPSIS in result.output_paths:
            self._write_protein_map(synopsis_pairs, base_name, result)

        error_log.report(os.path.basename(input_path))
        result.n_errors = error_log.n_errors
        result.error_log = str(error_log)
        if result.aborted:
            result.success = False
            result.message = "Processing aborted"
        else:
            result.message = f"Processed {result.n_records:,} results"

        logger.progress(
            f"{result.message} of {os.path.basename(input_path)}: "
            + ", ".join(f"{n:,} {key}" for key, n in result.n_written.items())
        )
        return result

    def _selectors(self, parser: ResultParser) -> dict[str, MatchSelector]:
        output_config = self._config[ConfigKeys.OUTPUT]
        sort_by_score = output_config["sort_by_score"]

        selectors = {}
        if output_config["create_first_hits"]:
            selectors[OutputTypes.FIRST_HITS] = MatchSelector(
                OutputTypes.FIRST_HITS,
                parser.ranking.primary,
                sort_by_score=sort_by_score,
            )
        if output_config["create_synopsis"]:
            thresholds = [
                Threshold.from_dict(threshold)
                for threshold in self._config[ConfigKeys.THRESHOLDS].get(
                    parser.tool_name, []
                )
            ]
            if not thresholds:
                raise ConfigError(
                    f"{ConfigKeys.THRESHOLDS}.{parser.tool_name}",
                    "[]",
                    self._config.name,
                    "Synopsis files require at least one score threshold.",
                )
            selectors[OutputTypes.SYNOPSIS] = MatchSelector(
                OutputTypes.SYNOPSIS,
                parser.ranking.primary,
                thresholds=thresholds,
                sort_by_score=sort_by_score,
            )
        return selectors

    def _process_lines(
        self,
        parser: ResultParser,
        input_path: str,
        base_name: str,
        result: ProcessingResult,
        sequence_info: SequenceInfo | None = None,
    ) -> list[tuple[str, str]]:
        """Stream the input file through parser, ranking and selection into the writers.

        Synopsis records are added to `sequence_info` with their result id, if given.
        Returns the peptide and protein pairs written to the synopsis file.
        """
        selectors = self._selectors(parser)
        # occurrences are counted on the synopsis, or the first hits if there is no synopsis
        counted_type = (
            OutputTypes.SYNOPSIS
            if OutputTypes.SYNOPSIS in selectors
            else OutputTypes.FIRST_HITS
        )
        synopsis_pairs = []

        progress = _ProgressReporter(
            self.progress_callback,
            os.path.getsize(input_path),
            self._config[ConfigKeys.PROCESSING]["progress_interval"],
        )

        with ExitStack() as stack:
            writers = {}
            for output_type in selectors:
                path = f"{base_name}_{output_type}.txt"
                writers[output_type] = stack.enter_context(
                    CanonicalWriter(
                        path,
                        parser.output_columns,
                        parser.output_row,
                        parser.float_precision,
                    )
                )
                result.output_paths[output_type] = path

            def write(output_type: str, records: list[SearchResult]) -> None:
                first_result_id = writers[output_type].n_written + 1
                result.n_written[output_type] = result.n_written.get(
                    output_type, 0
                ) + writers[output_type].write(records)

                if output_type == counted_type:
                    for record in records:
                        for modification in record.modified_peptide.modifications:
                            parser.registry.count_occurrence(modification.definition)
                if output_type == OutputTypes.SYNOPSIS:
                    synopsis_pairs.extend((r.peptide, r.protein) for r in records)
                    if sequence_info is not None:
                        for result_id, record in enumerate(records, start=first_result_id):
                            sequence_info.add(record, result_id)

            def select(group: list[SearchResult]) -> None:
                ranked = rank_scan_group(group, parser.ranking)
                for output_type, selector in selectors.items():
                    if selected := selector.select(ranked):
                        write(output_type, selected)

            for output_type in selectors:
                result.n_written[output_type] = 0

            buffer = ScanGroupBuffer()
            unsorted_records = []
            position = 0

            with open(input_path, "rb") as f:
                for line_number, raw_line in enumerate(f, start=1):
                    if self._is_aborted():
                        self._abort(parser.error_log, line_number, buffer, result)
                        break

                    position += len(raw_line)
                    result.n_lines = line_number

                    parsed = parser.parse_line(
                        raw_line.decode("utf-8", errors="replace"), line_number
                    )
                    if isinstance(parsed, SearchResult):
                        result.n_records += 1
                        if parser.requires_scan_sort:
                            unsorted_records.append(parsed)
                        elif group := buffer.add(parsed):
                            select(group)

                    progress.update(position)

            if not result.aborted:
                if parser.requires_scan_sort:
                    unsorted_records.sort(key=lambda r: (r.scan, r.charge))
                    for record in unsorted_records:
                        if group := buffer.add(record):
                            select(group)
                if group := buffer.finish():
                    select(group)

            for output_type, selector in selectors.items():
                if selector.sort_by_score:
                    write(output_type, selector.finish())

        if not result.aborted:
            progress.complete()

        return synopsis_pairs

    @staticmethod
    def _abort(
        error_log: ErrorLog,
        line_number: int,
        buffer: ScanGroupBuffer,
        result: ProcessingResult,
    ) -> None:
        n_dropped = buffer.discard()
        message = f"Processing aborted at line {line_number}"
        error_log.append(message, force=True)
        logger.warning(f"{message}, dropped {n_dropped} result(s) of the current scan")
        result.aborted = True

    @staticmethod
    def _write_mod_summary(
        registry: ModificationRegistry, base_name: str, result: ProcessingResult
    ) -> None:
        path = f"{base_name}_{OutputTypes.SYNOPSIS}_{MOD_SUMMARY_SUFFIX}.txt"
        summary_df = registry.to_summary_df()
        try:
            summary_df.to_csv(path, sep="\t", index=False)
        except OSError as e:
            raise OutputWriteFailureError(f"{path}: {e}") from e

        result.output_paths[MOD_SUMMARY_SUFFIX] = path
        result.n_written[MOD_SUMMARY_SUFFIX] = len(summary_df)

    def _write_protein_map(
        self,
        synopsis_pairs: list[tuple[str, str]],
        base_name: str,
        result: ProcessingResult,
    ) -> None:
        fasta_paths = self._config[ConfigKeys.FASTA_PATHS]
        if not fasta_paths:
            logger.warning(
                "Skipping the peptide to protein map, no FASTA files are configured"
            )
            return

        path = f"{base_name}_{OutputTypes.SYNOPSIS}_{PROTEIN_MAP_SUFFIX}.txt"
        protein_map_df = map_peptides_to_proteins(
            synopsis_pairs, load_protein_sequences(fasta_paths)
        )
        write_protein_map(protein_map_df, path)

        result.output_paths[PROTEIN_MAP_SUFFIX] = path
        result.n_written[PROTEIN_MAP_SUFFIX] = len(protein_map_df)


def process_files(
    input_paths: list[str],
    config: Config | dict | None = None,
    output_directory: str | None = None,
    search_tool: str | None = None,
    parameter_file: str | None = None,
    progress_callback=None,
    abort_event=None,
) -> list[ProcessingResult]:
    """Process several search result files one after another.

    A failure of one file is logged and reported in its `ProcessingResult`, the remaining files are still processed.
    Processing stops before the next file once `abort_event` is set.
    """
    processor = ResultsProcessor(
        config, progress_callback=progress_callback, abort_event=abort_event
    )

    results = []
    for i, input_path in enumerate(input_paths):
        logger.progress(f"File {i + 1} of {len(input_paths)}: {input_path}")
        try:
            result = processor.process_file(
                input_path,
                output_directory=output_directory,
                search_tool=search_tool,
                parameter_file=parameter_file,
            )
        except CustomError as e:
            logger.error(f"Processing {input_path} failed: {e}")
            result = ProcessingResult(
                input_path=input_path, success=False, message=str(e)
            )

        results.append(result)
        if result.aborted:
            break

    return results
