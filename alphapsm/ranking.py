"""Ranking of the peptide-spectrum matches of a scan.

Matches are ranked separately per charge state. Within a charge state, matches are sorted by the primary
score, then the secondary score, then peptide and protein to make the order reproducible.
Matches with a primary score equal within `epsilon` share a rank, so ranks are contiguous but not unique.
"""

import math
from dataclasses import dataclass

DEFAULT_EPSILON = 1e-6


@dataclass(frozen=True)
class ScoreKey:
    """A score column and its direction, `descending=True` if higher scores are better.

    Scores spanning many orders of magnitude, like e-values, are compared with a `relative` epsilon.
    """

    column: str
    descending: bool = True
    relative: bool = False

    def sort_value(self, record) -> tuple[bool, float]:
        """Sort value with the best score first and missing scores last."""
        value = record.scores.get(self.column, math.nan)
        if math.isnan(value):
            return True, 0.0
        return False, -value if self.descending else value


@dataclass(frozen=True)
class AuxiliaryScore:
    """Additional rank or delta norm column computed from another score.

    Parameters
    ----------
    score : ScoreKey
        Score to sort by.

    output_column : str
        Column the rank or delta norm is written to.

    tie_break : ScoreKey, optional
        Score to sort by if `score` is equal.

    """

    score: ScoreKey
    output_column: str
    tie_break: ScoreKey | None = None


@dataclass(frozen=True)
class RankingScheme:
    """Search tool specific ranking.

    Parameters
    ----------
    primary : ScoreKey
        Score that determines the rank.

    secondary : ScoreKey, optional
        Tie break if the primary scores are equal.

    rank_column : str
        Output column of the rank.

    delta_norm_column : str
        Output column of the normalized score difference to the next match.

    delta_norm_score : ScoreKey, optional
        Score the delta norm is computed from, defaults to the primary score.
        Use a "higher is better" score here for tools whose primary score is a probability or e-value.

    auxiliary_ranks : tuple of AuxiliaryScore
        Additional ranks, e.g. InSpecT's rank by FScore.

    auxiliary_delta_norms : tuple of AuxiliaryScore
        Additional delta norms, e.g. InSpecT's delta norm of the MQScore.

    epsilon : float
        Scores closer than epsilon are considered equal.

    """

    primary: ScoreKey
    secondary: ScoreKey | None = None
    rank_column: str = "Rank"
    delta_norm_column: str = "DeltaNormScore"
    delta_norm_score: ScoreKey | None = None
    auxiliary_ranks: tuple[AuxiliaryScore, ...] = ()
    auxiliary_delta_norms: tuple[AuxiliaryScore, ...] = ()
    epsilon: float = DEFAULT_EPSILON


def _sort_key(primary: ScoreKey, secondary: ScoreKey | None):
    def key(record):
        return (
            primary.sort_value(record),
            secondary.sort_value(record) if secondary is not None else (False, 0.0),
            record.peptide,
            record.protein,
        )

    return key


def sort_records(records: list, primary: ScoreKey, secondary: ScoreKey | None = None) -> list:
    """Sort records best first, ties resolved by `secondary`, peptide and protein."""
    return sorted(records, key=_sort_key(primary, secondary))


def assign_tied_ranks(
    scores: list[float], epsilon: float = DEFAULT_EPSILON, relative: bool = False
) -> list[int]:
    """Ranks of sorted scores, starting at 1; scores equal to the previous one within epsilon share its rank.

    Examples
    --------
    >>> assign_tied_ranks([50.0, 50.0, 40.0])
    [1, 1, 2]
    """
    ranks = []
    for i, score in enumerate(scores):
        if i == 0:
            ranks.append(1)
        elif _is_tied(score, scores[i - 1], epsilon, relative):
            ranks.append(ranks[-1])
        else:
            ranks.append(ranks[-1] + 1)
    return ranks


def _is_tied(score: float, previous: float, epsilon: float, relative: bool) -> bool:
    tolerance = epsilon * max(abs(score), abs(previous)) if relative else epsilon
    return score == previous or abs(score - previous) <= tolerance


def compute_delta_norms(scores: list[float]) -> list[float]:
    """Normalized difference of each score to the next one, |s[n] - s[n+1]| / |s[n]|.

    The last score, zero scores and missing scores get 0. Values are capped at 1.
    """
    delta_norms = []
    for current, following in zip(scores, scores[1:], strict=False):
        if current == 0 or math.isnan(current) or math.isnan(following):
            delta_norms.append(0.0)
        else:
            delta_norms.append(min(abs(current - following) / abs(current), 1.0))

    if scores:
        delta_norms.append(0.0)
    return delta_norms


def _scores(records: list, score: ScoreKey) -> list[float]:
    return [record.scores.get(score.column, math.nan) for record in records]


def rank_charge_group(records: list, scheme: RankingScheme) -> list:
    """Rank records that share scan and charge, returning them sorted best first.

    Sets `rank` and `delta_norm` of the records, auxiliary ranks and delta norms are stored in `extra`.
    """
    ranked = sort_records(records, scheme.primary, scheme.secondary)

    ranks = assign_tied_ranks(
        _scores(ranked, scheme.primary), scheme.epsilon, scheme.primary.relative
    )
    delta_norms = compute_delta_norms(
        _scores(ranked, scheme.delta_norm_score or scheme.primary)
    )
    for record, rank, delta_norm in zip(ranked, ranks, delta_norms, strict=True):
        record.rank = rank
        record.delta_norm = delta_norm

    for auxiliary in scheme.auxiliary_ranks:
        ordered = sort_records(ranked, auxiliary.score, auxiliary.tie_break)
        ranks = assign_tied_ranks(
            _scores(ordered, auxiliary.score), scheme.epsilon, auxiliary.score.relative
        )
        for record, rank in zip(ordered, ranks, strict=True):
            record.extra[auxiliary.output_column] = rank

    for auxiliary in scheme.auxiliary_delta_norms:
        ordered = sort_records(ranked, auxiliary.score, auxiliary.tie_break)
        delta_norms = compute_delta_norms(_scores(ordered, auxiliary.score))
        for record, delta_norm in zip(ordered, delta_norms, strict=True):
            record.extra[auxiliary.output_column] = delta_norm

    return ranked


def rank_scan_group(records: list, scheme: RankingScheme) -> list:
    """Rank the records of one scan per charge state.

    Parameters
    ----------
    records : list of SearchResult
        Records of one scan, in any order.

    scheme : RankingScheme
        Search tool specific ranking.

    Returns
    -------
    list of SearchResult
        Records ordered by charge, then best first.
    """
    ranked = []
    for charge in sorted({record.charge for record in records}):
        ranked += rank_charge_group(
            [record for record in records if record.charge == charge], scheme
        )
    return ranked
