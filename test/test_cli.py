import pytest

from seaman_gateway.cli import parse_args


def test_parse_required_arguments() -> None:
    args = parse_args(["--cid=111", "--seaman_ip=192.168.0.1"])

    assert args.cid == 111
    assert args.seaman_ip == "192.168.0.1"
    assert args.verbose is False


def test_parse_verbose_and_dashed_alias() -> None:
    args = parse_args(["--cid", "7", "--seaman-ip", "10.0.0.2", "--verbose"])

    assert args.cid == 7
    assert args.seaman_ip == "10.0.0.2"
    assert args.verbose is True


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["--cid=111"],
        ["--seaman_ip=192.168.0.1"],
        ["--cid=abc", "--seaman_ip=192.168.0.1"],
        ["--cid=-3", "--seaman_ip=192.168.0.1"],
    ],
)
def test_missing_or_invalid_arguments_exit_1(argv, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_args(argv)

    assert excinfo.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith("usage: seaman_gateway")
    assert "error:" in err
