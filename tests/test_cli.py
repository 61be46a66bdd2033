import json

import pytest

import rating_constants.__main__ as cli


def chart_fields(song):
    return {'song': song, 'difficulty': 'master', 'generation': 'deluxe'}


def write_document(tmp_path, xeno_constant=None, version='BUDDIES_PLUS'):
    xeno = {**chart_fields('Xeno'), 'version': 'BUDDIES_PLUS', 'level': '13'}
    if xeno_constant is not None:
        xeno['constant'] = xeno_constant
    document = {
        'catalog': [
            xeno,
            {**chart_fields('Yarrow'), 'version': 'BUDDIES_PLUS', 'level': '13', 'constant': '13.3'},
        ],
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
                'snapshots': [
                    {
                        'taken_at': '2024-04-02T12:00:00',
                        'new': {
                            'entries': [
                                {**chart_fields('Yarrow'), 'achievement': '100.5'},
                                {**chart_fields('Xeno'), 'achievement': '100.5'},
                            ]
                        },
                    }
                ],
            },
        ],
    }
    if version is not None:
        document['version'] = version
    path = tmp_path / 'dataset.json'
    path.write_text(json.dumps(document), encoding='utf-8')
    return path


def test_main_prints_estimates(tmp_path, capsys):
    path = write_document(tmp_path)

    cli.main([str(path)])

    out = capsys.readouterr().out
    assert 'Version: BUDDIES_PLUS' in out
    assert 'Passes: 2' in out
    assert 'Xeno [DX MAS]: {13.0, 13.1, 13.2, 13.3}' in out
    assert 'Yarrow [DX MAS]: 13.3' in out
    assert 'Summary: known=1 narrowed=1 unconstrained=0 removed=0 contradiction=0' in out


def test_main_distrust_passes(tmp_path, capsys):
    path = write_document(tmp_path, xeno_constant='13.1')

    cli.main([str(path), '--distrust'])

    out = capsys.readouterr().out
    assert 'Version: BUDDIES_PLUS (distrust)' in out
    assert 'Verified: 1' in out
    assert 'Unresolved: 1' in out
    assert 'Mismatches:\n  (none)' in out


def test_main_distrust_fails_on_mismatch(tmp_path, capsys):
    path = write_document(tmp_path, xeno_constant='13.5')

    with pytest.raises(SystemExit) as exc:
        cli.main([str(path), '--distrust'])

    assert exc.value.code == 1
    assert '! Xeno [DX MAS]' in capsys.readouterr().out


def test_main_requires_a_version(tmp_path):
    path = write_document(tmp_path, version=None)

    with pytest.raises(SystemExit) as exc:
        cli.main([str(path)])

    assert exc.value.code == 2


def test_main_passes_options_to_estimator(tmp_path, monkeypatch, capsys):
    path = write_document(tmp_path)
    calls = []
    real_estimate = cli.estimate

    def _estimate(catalog, users, version, seeds, config):
        calls.append((version, config))
        return real_estimate(catalog, users, version, seeds, config)

    monkeypatch.setattr(cli, 'estimate', _estimate)

    cli.main([str(path), '--version', 'buddies_plus', '--max-passes', '5', '--no-rating-sum', '--show-all'])

    [(version, config)] = calls
    assert version.name == 'BUDDIES_PLUS'
    assert config.max_passes == 5
    assert not config.use_rating_sum
    assert 'Passes: 2' in capsys.readouterr().out
