"""This module provides unit tests for alphapsm.selection."""

import pytest
from conftest import make_record

from alphapsm.constants.keys import OutputTypes
from alphapsm.ranking import RankingScheme, ScoreKey, rank_scan_group
from alphapsm.selection import (
    MatchSelector,
    ScanGroupBuffer,
    Threshold,
    select_first_hits,
    select_synopsis,
)

SCHEME = RankingScheme(primary=ScoreKey("Score"))

THRESHOLDS = [Threshold("PValue", "<=", 0.2), Threshold("Score", ">=", 50.0)]


def _scan_group(scan: int = 1) -> list:
    return [
        make_record(scan=scan, charge=charge, peptide=f"K.{residue * 3}.R", Score=score)
        for charge in (2, 3)
        for residue, score in (("A", 10.0), ("C", 30.0), ("D", 20.0))
    ]


def test_select_first_hits_one_record_per_charge():
    """Test first hits contain exactly the best record of each charge state."""
    # given
    ranked = rank_scan_group(_scan_group(), SCHEME)

    # when
    selected = select_first_hits(ranked)

    # then
    assert len(selected) == 2
    assert [(r.charge, r.peptide, r.rank) for r in selected] == [
        (2, "K.CCC.R", 1),
        (3, "K.CCC.R", 1),
    ]


def test_select_synopsis_any_threshold_passes():
    """Test records passing any threshold are kept."""
    # given
    kept = make_record(peptide="K.AAA.R", PValue=0.5, Score=60.0)
    dropped = make_record(peptide="K.BBB.R", PValue=0.5, Score=10.0)

    # when
    selected = select_synopsis([kept, dropped], THRESHOLDS)

    # then
    assert selected == [kept]


@pytest.mark.parametrize(
    "operator,score,expected",
    [
        ("<=", 0.2, True),
        ("<", 0.2, False),
        (">=", 0.2, True),
        (">", 0.3, True),
        ("<=", float("nan"), False),
    ],
)
def test_threshold_passes(operator, score, expected):
    """Test threshold comparisons, missing scores never pass."""
    assert Threshold("PValue", operator, 0.2).passes(make_record(PValue=score)) is expected


def test_threshold_missing_column_does_not_pass():
    """Test a record without the threshold column does not pass."""
    assert not Threshold("QValue", "<", 0.1).passes(make_record(PValue=0.0))


def test_threshold_invalid_operator():
    """Test unknown operators are rejected."""
    with pytest.raises(ValueError, match="Unknown threshold operator '=='"):
        Threshold("PValue", "==", 0.2)


def test_threshold_from_dict():
    """Test creating thresholds from the config."""
    threshold = Threshold.from_dict({"column": "SpecEValue", "operator": "<=", "value": "5e-7"})

    assert threshold == Threshold("SpecEValue", "<=", 5e-7)
    assert str(threshold) == "SpecEValue <= 5e-07"


def test_scan_group_buffer():
    """Test groups are completed when the scan changes and at the end."""
    # given
    buffer = ScanGroupBuffer()
    first, second, third = make_record(scan=1), make_record(scan=1), make_record(scan=2)

    # when
    completed = [buffer.add(first), buffer.add(second), buffer.add(third)]

    # then
    assert completed == [None, None, [first, second]]
    assert buffer.finish() == [third]
    assert buffer.finish() is None


def test_scan_group_buffer_discard():
    """Test discarding the incomplete group."""
    buffer = ScanGroupBuffer()
    buffer.add(make_record(scan=1))
    buffer.add(make_record(scan=1))

    assert buffer.discard() == 2
    assert buffer.finish() is None


def test_match_selector_scan_order():
    """Test records are returned immediately without score ordering."""
    # given
    selector = MatchSelector(OutputTypes.FIRST_HITS, SCHEME.primary)

    # when
    selected = selector.select(rank_scan_group(_scan_group(), SCHEME))

    # then
    assert len(selected) == 2
    assert selector.finish() == []


def test_match_selector_sort_by_score():
    """Test buffered records are ordered by score, then scan and charge."""
    # given
    selector = MatchSelector(
        OutputTypes.SYNOPSIS,
        SCHEME.primary,
        thresholds=[Threshold("Score", ">=", 20.0)],
        sort_by_score=True,
    )

    # when
    selected = [
        selector.select(rank_scan_group(_scan_group(scan), SCHEME)) for scan in (1, 2)
    ]
    finished = selector.finish()

    # then
    assert selected == [[], []]
    assert [(r.scores["Score"], r.scan, r.charge) for r in finished] == [
        (30.0, 1, 2),
        (30.0, 1, 3),
        (30.0, 2, 2),
        (30.0, 2, 3),
        (20.0, 1, 2),
        (20.0, 1, 3),
        (20.0, 2, 2),
        (20.0, 2, 3),
    ]


@pytest.mark.parametrize(
    "output_type,thresholds,match",
    [
        ("xyz", None, "Unknown output type"),
        (OutputTypes.SYNOPSIS, None, "requires at least one threshold"),
    ],
)
def test_match_selector_invalid(output_type, thresholds, match):
    """Test invalid selector configurations."""
    with pytest.raises(ValueError, match=match):
        MatchSelector(output_type, SCHEME.primary, thresholds=thresholds)
