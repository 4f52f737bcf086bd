"""Selection of the ranked matches that are written to the first hits and synopsis files.

Input files are processed in a single pass. Records are collected per scan and a new scan number
flushes the previous scan group, which is then ranked and handed to the selectors.
"""

import logging
import math
import operator
from dataclasses import dataclass

from alphapsm.constants.keys import OutputTypes
from alphapsm.ranking import ScoreKey

logger = logging.getLogger()

_OPERATORS = {
    "<=": operator.le,
    "<": operator.lt,
    ">=": operator.ge,
    ">": operator.gt,
}


@dataclass(frozen=True)
class Threshold:
    """A record passes if `scores[column] <operator> value`, missing scores never pass."""

    column: str
    operator: str
    value: float

    def __post_init__(self):
        if self.operator not in _OPERATORS:
            raise ValueError(
                f"Unknown threshold operator '{self.operator}', use one of {list(_OPERATORS)}"
            )

    @classmethod
    def from_dict(cls, threshold: dict) -> "Threshold":
        return cls(
            column=threshold["column"],
            operator=threshold["operator"],
            value=float(threshold["value"]),
        )

    def passes(self, record) -> bool:
        score = record.scores.get(self.column, math.nan)
        if math.isnan(score):
            return False
        return _OPERATORS[self.operator](score, self.value)

    def __str__(self):
        return f"{self.column} {self.operator} {self.value}"


def select_first_hits(ranked: list) -> list:
    """Best record of every charge state in a ranked scan group."""
    selected = []
    charges = set()
    for record in ranked:
        if record.charge not in charges:
            charges.add(record.charge)
            selected.append(record)
    return selected


def select_synopsis(ranked: list, thresholds: list[Threshold]) -> list:
    """All records of a ranked scan group that pass any of the thresholds."""
    return [
        record
        for record in ranked
        if any(threshold.passes(record) for threshold in thresholds)
    ]


class ScanGroupBuffer:
    """Collects consecutive records of the same scan.

    `add` returns the previous scan group once a record of a new scan arrives,
    `finish` returns the last group at the end of the input.
    """

    def __init__(self):
        self._group = []

    def add(self, record) -> list | None:
        completed = None
        if self._group and record.scan != self._group[0].scan:
            completed = self._group
            self._group = []
        self._group.append(record)
        return completed

    def finish(self) -> list | None:
        completed = self._group or None
        self._group = []
        return completed

    def discard(self) -> int:
        """Drop the incomplete group, returning the number of dropped records."""
        n_dropped = len(self._group)
        self._group = []
        return n_dropped


def global_sort_key(primary: ScoreKey):
    """Sort key for score ordered output: best primary score, then scan, charge, peptide and protein."""

    def key(record):
        return (
            primary.sort_value(record),
            record.scan,
            record.charge,
            record.peptide,
            record.protein,
        )

    return key


class MatchSelector:
    """Selects the records of ranked scan groups for one output type.

    Parameters
    ----------
    output_type : str
        `OutputTypes.FIRST_HITS` or `OutputTypes.SYNOPSIS`.

    primary : ScoreKey
        Primary score of the search tool, used for score ordered output.

    thresholds : list of Threshold, optional
        Synopsis thresholds, combined with OR.

    sort_by_score : bool, default False
        Buffer all selected records and return them ordered by `global_sort_key` from `finish`.
        Otherwise records are returned in scan order by `select`.

    """

    def __init__(
        self,
        output_type: str,
        primary: ScoreKey,
        thresholds: list[Threshold] | None = None,
        sort_by_score: bool = False,
    ):
        if output_type not in OutputTypes.get_values():
            raise ValueError(f"Unknown output type '{output_type}'")
        if output_type == OutputTypes.SYNOPSIS and not thresholds:
            raise ValueError("Synopsis selection requires at least one threshold")

        self.output_type = output_type
        self.primary = primary
        self.thresholds = thresholds or []
        self.sort_by_score = sort_by_score

        self._buffer = []

    def select(self, ranked: list) -> list:
        """Select from a ranked scan group, returning the records that can be written now."""
        if self.output_type == OutputTypes.FIRST_HITS:
            selected = select_first_hits(ranked)
        else:
            selected = select_synopsis(ranked, self.thresholds)

        if self.sort_by_score:
            self._buffer += selected
            return []
        return selected

    def finish(self) -> list:
        """Records buffered for score ordered output, sorted."""
        buffered = sorted(self._buffer, key=global_sort_key(self.primary))
        self._buffer = []
        return buffered
