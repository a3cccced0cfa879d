"""
Tests for the command line interface.
"""
import os

import pytest

from pysts.__main__ import main, cli
from pysts.configs import load_config, list_configs
from pysts.params import parser
from pysts.verdict import Verdict


MODELS = os.path.join(os.path.dirname(__file__), '..', 'models')


def model(name):
    return os.path.join(MODELS, name + '.yml')


def test_list_configs(capsys):
    assert list_configs() == ['ExplicitAnalysisCEGAR', 'PredicateAnalysisCEGAR']
    assert main(parser.parse_args(['--list-configs'])) == []
    assert 'PredicateAnalysisCEGAR' in capsys.readouterr().out


def test_load_config():
    config = load_config('pysts/config/PredicateAnalysisCEGAR.py')
    assert hasattr(config, 'get_algorithm')


def test_verdicts(capsys):
    args = parser.parse_args([model('counter_unsafe'), model('counter_safe'), model('parallel_counters'), '--compact'])
    results = main(args)
    assert [r.verdict for r in results] == [Verdict.UNSAFE, Verdict.PROVED, Verdict.PROVED]

    out = capsys.readouterr().out
    assert 'counter_unsafe: UNSAFE' in out
    assert 'counter_safe: PROVED' in out


def test_model_error_is_reported(capsys):
    results = main(parser.parse_args([model('undeclared'), '--compact']))
    assert results[0].verdict == Verdict.ERROR
    assert 'undeclared' in results[0].reason
    assert 'MODEL_ERROR' in capsys.readouterr().out


def test_explicit_config():
    results = main(parser.parse_args([model('mutex'), '-c', 'ExplicitAnalysisCEGAR', '--compact']))
    assert results[0].verdict == Verdict.PROVED


def test_output_artifacts(tmp_path):
    main(parser.parse_args([model('counter_unsafe'), '-o', str(tmp_path), '--compact']))
    out = tmp_path / 'counter_unsafe'
    for name in ('precision_0.txt', 'arg_0.gv', 'path_0.txt', 'predicates_0.txt',
                 'precision_1.txt', 'arg_1.gv', 'path_1.txt'):
        assert (out / name).exists(), name
    assert 'digraph' in (out / 'arg_0.gv').read_text()
    assert '(x <= 0)' in (out / 'predicates_0.txt').read_text()


def test_model_options_override_arguments(tmp_path):
    model_file = tmp_path / 'limited.yml'
    model_file.write_text(
        "variables: {x: int, y: int}\n"
        "init: x == 0 and y == 0\n"
        "trans: next(x) == x + 1 and next(y) == y + 1\n"
        "error: x == 2 and y == 5\n"
        "options:\n"
        "  max_iterations: 1\n"
    )
    results = main(parser.parse_args([str(model_file), '--compact']))
    assert results[0].verdict == Verdict.TIMEOUT


def test_exit_code():
    with pytest.raises(SystemExit) as excinfo:
        cli([model('counter_safe'), '--compact'])
    assert excinfo.value.code == 0
    with pytest.raises(SystemExit) as excinfo:
        cli([model('undeclared'), '--compact'])
    assert excinfo.value.code == 1


def test_models_declare_their_own_sorts(tmp_path):
    """x is an int in one model and a bool in the next."""
    numeric = tmp_path / 'numeric.yml'
    numeric.write_text(
        "variables: {x: int}\n"
        "init: x == 0\n"
        "trans: next(x) == x + 1\n"
        "error: x < 0\n"
    )
    flag = tmp_path / 'flag.yml'
    flag.write_text(
        "variables: {x: bool}\n"
        "init: not x\n"
        "trans: next(x) == x\n"
        "error: x\n"
    )
    results = main(parser.parse_args([str(numeric), str(flag), '--compact']))
    assert [r.verdict for r in results] == [Verdict.PROVED, Verdict.PROVED]


def test_undeclared_name_does_not_leak(tmp_path):
    """z is left undeclared by one model, the next declares it as bool."""
    flag = tmp_path / 'flag.yml'
    flag.write_text(
        "variables: {z: bool}\n"
        "init: not z\n"
        "trans: next(z) == z\n"
        "error: z\n"
    )
    results = main(parser.parse_args([model('undeclared'), str(flag), '--compact']))
    assert [r.verdict for r in results] == [Verdict.ERROR, Verdict.PROVED]


def test_unavailable_solver(capsys):
    results = main(parser.parse_args([model('counter_safe'), '--solver', 'no_such_solver', '--compact']))
    assert results[0].verdict == Verdict.ERROR
    assert 'no_such_solver' in results[0].reason
    assert 'counter_safe: ERROR' in capsys.readouterr().out


def test_model_domain_conflicts_with_config(tmp_path, capsys):
    """The configuration decides the domain, a different model option is reported."""
    model_file = tmp_path / 'wants_expl.yml'
    model_file.write_text(
        "variables: {x: int}\n"
        "init: x == 0\n"
        "trans: next(x) == x + 1\n"
        "error: x < 0\n"
        "options:\n"
        "  domain: expl\n"
    )
    results = main(parser.parse_args([str(model_file)]))
    assert results[0].verdict == Verdict.PROVED
    assert "domain 'expl' of task 'wants_expl' ignored" in capsys.readouterr().out
