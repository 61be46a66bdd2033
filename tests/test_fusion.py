from datetime import datetime

import pytest

from rating_constants.catalog import CatalogEntry, ChartCatalog
from rating_constants.estimator import (
    EstimatorConfig,
    FusionError,
    PlayEvent,
    RankedEntry,
    RankedList,
    RatingTargetSnapshot,
    UserDataset,
    build_store,
    default_pass_cap,
    estimate,
    run_fusion,
    run_order_pass,
)
from rating_constants.types import ChartKey, Difficulty, GameVersion, Generation, ScoreLevel

V = GameVersion.BUDDIES_PLUS


def chart(song):
    return ChartKey(song, Difficulty.MASTER, Generation.DELUXE)


def catalog():
    return ChartCatalog(
        [
            CatalogEntry(chart('Xeno'), V, ScoreLevel(13)),
            CatalogEntry(chart('Yarrow'), V, ScoreLevel(13)),
        ]
    )


def bob(complete=True):
    # 100.5% on 13.3 rates 299.
    event = PlayEvent(chart('Yarrow'), 1005000, 299, datetime(2024, 4, 1, 12, 0), user='bob')
    return UserDataset('bob', events=[event], new_songs_are_complete=complete)


def alice():
    snapshot = RatingTargetSnapshot(
        taken_at=datetime(2024, 4, 2, 12, 0),
        new=RankedList(
            entries=(RankedEntry(chart('Yarrow'), 1005000), RankedEntry(chart('Xeno'), 1005000))
        ),
        user='alice',
    )
    return UserDataset('alice', snapshots=[snapshot])


def test_evidence_is_shared_between_users():
    result = estimate(catalog(), [bob(), alice()], V)

    assert result.known_constants() == {chart('Yarrow'): 133}
    assert result.store.candidates(chart('Xeno')) == frozenset({130, 131, 132, 133})
    assert result.contradictions == []
    assert result.report.new_evidence_changed
    assert result.report.changes == [True, False]
    assert result.report.converged


def test_order_alone_cannot_narrow():
    result = estimate(catalog(), [alice()], V)

    assert result.store.candidates(chart('Xeno')) == frozenset(range(130, 136))
    assert result.report.passes == 1


def test_incomplete_new_history_skips_deltas():
    result = estimate(catalog(), [bob(complete=False), alice()], V)

    assert result.store.state(chart('Yarrow')).status == 'unconstrained'
    assert not result.report.new_evidence_changed


def test_fixpoint_is_idempotent():
    cat = catalog()
    users = [bob(), alice()]
    result = estimate(cat, users, V)
    before = result.store.sizes()

    assert not run_order_pass(result.store, cat, users, V)
    assert result.store.sizes() == before


def test_passes_only_shrink_sets():
    cat = catalog()
    users = [alice()]
    store = build_store(cat, V)
    store.narrow(chart('Yarrow'), {133}, 'by assumption')

    previous = store.sizes()
    for _ in range(3):
        run_order_pass(store, cat, users, V)
        sizes = store.sizes()
        assert all(sizes[key] <= previous[key] for key in sizes)
        previous = sizes
    assert previous[chart('Xeno')] == 4


def test_pass_cap_raises():
    cat = catalog()
    store = build_store(cat, V)

    with pytest.raises(FusionError):
        run_fusion(store, cat, [bob(), alice()], V, EstimatorConfig(max_passes=1))


def test_default_pass_cap_follows_candidate_count():
    store = build_store(catalog(), V)
    assert default_pass_cap(store) == 2 * 12 + 2


def test_contradictions_do_not_stop_the_fixpoint():
    cat = catalog()
    # Bob's delta pins Yarrow at 13.3, yet Carol ranks it under Xeno seeded at 13.0.
    snapshot = RatingTargetSnapshot(
        taken_at=datetime(2024, 4, 2),
        new=RankedList(
            entries=(RankedEntry(chart('Xeno'), 1005000), RankedEntry(chart('Yarrow'), 1005000))
        ),
    )
    carol = UserDataset('carol', snapshots=[snapshot])

    result = estimate(cat, [bob(), carol], V, seeds={chart('Xeno'): 130})

    assert result.report.changes == [True, False]
    assert {c.chart for c in result.contradictions} == {chart('Xeno'), chart('Yarrow')}
    assert len(result.contradictions) == 2
    assert result.store.candidates(chart('Xeno')) == frozenset({130})
    assert result.store.candidates(chart('Yarrow')) == frozenset({133})
