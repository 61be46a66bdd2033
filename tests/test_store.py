import logging

import pytest

from rating_constants.catalog import UnknownChartError
from rating_constants.store import CandidateStore
from rating_constants.types import FULL_DOMAIN, ChartKey, Difficulty, Generation


def chart(song):
    return ChartKey(song, Difficulty.MASTER, Generation.DELUXE)


def make_store(**initial):
    store = CandidateStore()
    for song, candidates in initial.items():
        store.add_chart(chart(song), candidates)
    store.reset_pass()
    return store


def test_new_chart_starts_unconstrained():
    store = CandidateStore()
    store.add_chart(chart('A'))

    state = store.state(chart('A'))
    assert state.status == 'unconstrained'
    assert state.candidates == FULL_DOMAIN
    assert state.constant is None


def test_add_chart_rejects_duplicates_and_empty_sets():
    store = make_store(A={130})
    with pytest.raises(ValueError):
        store.add_chart(chart('A'), {131})
    with pytest.raises(ValueError):
        store.add_chart(chart('B'), set())
    with pytest.raises(ValueError):
        store.add_chart(chart('C'), {9})


def test_narrow_only_shrinks():
    store = make_store(A=range(130, 136))

    assert store.narrow(chart('A'), range(132, 140), 'first')
    assert store.candidates(chart('A')) == frozenset(range(132, 136))
    assert store.state(chart('A')).status == 'narrowed'
    assert store.changed()

    store.reset_pass()
    assert not store.narrow(chart('A'), range(120, 140), 'wider')
    assert not store.changed()

    assert store.narrow(chart('A'), {133}, 'last')
    state = store.state(chart('A'))
    assert state.status == 'known'
    assert state.constant == 133
    assert store.num_known() == 1


def test_empty_intersection_records_single_contradiction(caplog):
    store = make_store(A=range(130, 136))
    store.mark_known(chart('A'), 133)
    store.reset_pass()

    with caplog.at_level(logging.WARNING, logger='rating_constants.store'):
        assert not store.narrow(chart('A'), {140}, 'conflicting record')

    assert store.changed()
    assert store.candidates(chart('A')) == frozenset({133})
    [contradiction] = store.contradictions()
    assert contradiction.chart == chart('A')
    assert contradiction.prior == frozenset({133})
    assert contradiction.proposed == frozenset({140})
    assert 'conflicting record' in str(contradiction)
    assert 'Contradiction' in caplog.text
    assert store.state(chart('A')).status == 'contradiction'


def test_repeated_contradiction_is_not_a_change():
    store = make_store(A={130})
    store.narrow(chart('A'), {131}, 'x')
    store.reset_pass()

    store.narrow(chart('A'), {131}, 'x')

    assert not store.changed()
    assert len(store.contradictions()) == 1


def test_same_conflict_from_another_source_is_recorded():
    store = make_store(A={130})
    store.narrow(chart('A'), {131}, 'first snapshot')
    store.reset_pass()

    store.narrow(chart('A'), {131}, 'second snapshot')

    assert store.changed()
    assert [c.reason for c in store.contradictions()] == ['first snapshot', 'second snapshot']


def test_contradicted_chart_accepts_no_more_narrowing():
    store = make_store(A={130, 131, 132})
    store.narrow(chart('A'), {140}, 'bad')

    assert not store.narrow(chart('A'), {130}, 'later')
    assert store.candidates(chart('A')) == frozenset({130, 131, 132})


def test_removed_chart_ignores_evidence():
    store = make_store(A={130, 131})
    assert store.mark_removed(chart('A'))
    assert not store.mark_removed(chart('A'))

    assert not store.narrow(chart('A'), {140}, 'late record')

    assert store.is_removed(chart('A'))
    assert store.state(chart('A')).status == 'removed'
    assert store.contradictions() == []


def test_unknown_chart_raises():
    store = make_store(A={130})
    with pytest.raises(UnknownChartError) as exc:
        store.narrow(chart('B'), {130}, 'x')
    assert exc.value.chart == chart('B')
    assert 'B [DX MAS]' in str(exc.value)


def test_history_lists_every_step():
    store = make_store(A=range(130, 136))
    store.narrow(chart('A'), {131, 132}, 'by record one')
    store.narrow(chart('A'), {132}, 'by record two')

    events = store.history(chart('A'))
    assert [event.candidates for event in events] == [
        frozenset(range(130, 136)),
        frozenset({131, 132}),
        frozenset({132}),
    ]
    assert str(events[-1]) == 'A [DX MAS]: determined to {13.2} by record two'


def test_sizes_and_keys():
    store = make_store(B={130, 131}, A={120})
    assert store.keys() == [chart('A'), chart('B')]
    assert store.sizes() == {chart('A'): 1, chart('B'): 2}
    assert store.total_candidates() == 3
    assert [state.chart for state in store.states()] == [chart('A'), chart('B')]
