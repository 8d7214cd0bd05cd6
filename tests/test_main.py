import pytest

from mqttscope.main import HISTORY_ERROR, main, parse_args


def test_default_history():
    assert parse_args([]).history == 10


@pytest.mark.parametrize(
    "argv, expected",
    [(["-h", "5"], 5), (["--history", "42"], 42), (["--history=1"], 1)],
)
def test_history_option(argv, expected):
    assert parse_args(argv).history == expected


@pytest.mark.parametrize("value", ["0", "-3", "abc", "1.5"])
def test_invalid_history_exits(value, capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(["--history", value])
    assert info.value.code == 2
    assert HISTORY_ERROR in capsys.readouterr().err


def test_version_option(capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(["--version"])
    assert info.value.code == 0
    assert "1.0" in capsys.readouterr().out


def test_main_rejects_bad_history():
    with pytest.raises(SystemExit) as info:
        main(["-h", "none"])
    assert info.value.code == 2