import logging

from sysgen_flag import Unsupported, resolve_flag, resolve_flags


def _warnings(caplog) -> list:
    return [r.getMessage() for r in caplog.records
            if r.levelno == logging.WARNING]


def test_resolve_open_flags() -> None:
    consts = {'O_RDONLY': 0, 'O_WRONLY': 1}
    vals = resolve_flag(
        ['O_RDONLY', 'O_WRONLY', '2'], consts, Unsupported('amd64')
    )
    assert vals == ['0', '1', '2']


def test_literals_kept_verbatim() -> None:
    vals = resolve_flag(
        ['0x10', '-1', 'MISSING', '7'], {}, Unsupported('amd64')
    )
    assert vals == ['0x10', '-1', '7']


def test_all_dropped() -> None:
    assert resolve_flag(['A', 'B'], {}, Unsupported('amd64')) == []


def test_warning_once_per_symbol(caplog) -> None:
    unsupported = Unsupported('arm64')
    flags = {
        'f1': ['MISSING', 'A'],
        'f2': ['A', 'MISSING'],
    }

    with caplog.at_level(logging.WARNING):
        result = resolve_flags(flags, {'A': 3}, unsupported)

    assert result == {'f1': ['3'], 'f2': ['3']}
    assert _warnings(caplog) == ['[arm64] unsupported flag: MISSING']


def test_warning_once_per_use(caplog) -> None:
    unsupported = Unsupported('amd64')

    with caplog.at_level(logging.WARNING):
        resolve_flag(['MISSING'], {}, unsupported)
        unsupported.report('const', 'MISSING')
        unsupported.report('const', 'MISSING')
        unsupported.report('resource value', 'MISSING')

    assert _warnings(caplog) == [
        '[amd64] unsupported flag: MISSING',
        '[amd64] unsupported const: MISSING',
        '[amd64] unsupported resource value: MISSING',
    ]
