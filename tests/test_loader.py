import json
from datetime import datetime

import pytest

from rating_constants.estimator import RankedList
from rating_constants.loader import LoaderError, load_dataset, parse_dataset
from rating_constants.types import ChartKey, Difficulty, GameVersion, Generation, ScoreLevel


def chart_fields(song, difficulty='master', generation='deluxe'):
    return {'song': song, 'difficulty': difficulty, 'generation': generation}


def document():
    return {
        'version': 'BUDDIES_PLUS',
        'catalog': [
            {**chart_fields('Xeno'), 'version': 'BUDDIES_PLUS', 'level': '13'},
            {**chart_fields('Yarrow'), 'version': 'BUDDIES_PLUS', 'level': '13', 'constant': '13.3'},
            {
                **chart_fields('Gone', 'expert', 'standard'),
                'version': 'BUDDIES',
                'level': '12+',
                'removed_at': '2024-01-10T06:00:00',
            },
        ],
        'seeds': [{**chart_fields('Xeno'), 'constant': '13.1'}],
        'users': [
            {
                'name': 'bob',
                'events': [
                    {
                        **chart_fields('Yarrow'),
                        'achievement': '100.5000',
                        'delta': 299,
                        'played_at': '2024-04-01T12:00:00',
                    }
                ],
            },
            {
                'name': 'alice',
                'new_songs_are_complete': False,
                'snapshots': [
                    {
                        'taken_at': '2024-04-02T12:00:00',
                        'rating': 600,
                        'new': {
                            'entries': [
                                {**chart_fields('Yarrow'), 'achievement': 1005000},
                                {**chart_fields('Xeno'), 'achievement': '100.5'},
                            ],
                            'excluded': [{**chart_fields('Gone', 'expert', 'standard'), 'achievement': '99'}],
                        },
                    }
                ],
            },
        ],
    }


def test_parse_dataset():
    dataset = parse_dataset(document())

    xeno = ChartKey('Xeno', Difficulty.MASTER, Generation.DELUXE)
    yarrow = ChartKey('Yarrow', Difficulty.MASTER, Generation.DELUXE)
    gone = ChartKey('Gone', Difficulty.EXPERT, Generation.STANDARD)

    assert dataset.version is GameVersion.BUDDIES_PLUS
    assert len(dataset.catalog) == 3
    assert dataset.catalog.get(yarrow).constant == 133
    assert dataset.catalog.get(gone).level == ScoreLevel(12, True)
    assert dataset.catalog.get(gone).removed_at == datetime(2024, 1, 10, 6, 0)
    assert dataset.seeds == {xeno: 131}

    bob, alice = dataset.users
    assert bob.events[0].achievement == 1005000
    assert bob.events[0].user == 'bob'
    assert not alice.new_songs_are_complete
    snapshot = alice.snapshots[0]
    assert snapshot.rating == 600
    assert [entry.chart for entry in snapshot.new.entries] == [yarrow, xeno]
    assert [entry.achievement for entry in snapshot.new.entries] == [1005000, 1005000]
    assert snapshot.new.excluded[0].achievement == 990000
    assert snapshot.old == RankedList()


def test_load_dataset_from_file(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text(json.dumps(document()), encoding='utf-8')

    dataset = load_dataset(path)

    assert [user.name for user in dataset.users] == ['bob', 'alice']


def test_load_dataset_rejects_invalid_json(tmp_path):
    path = tmp_path / 'data.json'
    path.write_text('{not json', encoding='utf-8')

    with pytest.raises(LoaderError) as exc:
        load_dataset(path)

    assert 'invalid JSON' in str(exc.value)


def _broken(mutate):
    doc = document()
    mutate(doc)
    return doc


@pytest.mark.parametrize(
    'doc, message_part',
    [
        (_broken(lambda d: d.pop('catalog')), "missing field 'catalog'"),
        (_broken(lambda d: d['catalog'][0].update(difficulty='legendary')), "'legendary' is not one of"),
        (_broken(lambda d: d['catalog'][0].update(level='16')), 'catalog[0]'),
        (_broken(lambda d: d['catalog'][1].update(constant='15.5')), 'out of range'),
        (_broken(lambda d: d['catalog'].append(dict(d['catalog'][0]))), 'duplicate catalog entry'),
        (_broken(lambda d: d['users'][0]['events'][0].update(played_at='yesterday')), 'malformed timestamp'),
        (_broken(lambda d: d['users'][0]['events'][0].update(delta='12')), 'delta must be an integer'),
        (_broken(lambda d: d['users'][0]['events'][0].update(achievement='102')), 'users[0].events[0]'),
        (_broken(lambda d: d.update(version='MAIMAI_ZERO')), 'unknown game version'),
    ],
)
def test_parse_dataset_reports_location(doc, message_part):
    with pytest.raises(LoaderError) as exc:
        parse_dataset(doc)

    assert message_part in str(exc.value)
