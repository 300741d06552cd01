"""Tests for terminal client argument handling."""

import pytest

from app.client.cli import build_parser, parse_device, print_devices


def test_defaults():
    args = build_parser().parse_args([])
    assert args.scenario == ""
    assert args.language == "English"
    assert args.files is None
    assert not args.no_play


def test_options():
    args = build_parser().parse_args(
        ["--scenario", "At Home", "--language", "Hindi", "--file", "a.ogg", "--file", "b.wav"]
    )
    assert args.scenario == "At Home"
    assert args.language == "Hindi"
    assert args.files == ["a.ogg", "b.wav"]


def test_unknown_scenario_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--scenario", "At Zoo"])


@pytest.mark.parametrize(
    "value, expected",
    [(None, None), ("3", 3), ("USB Mic", "USB Mic")],
)
def test_parse_device(value, expected):
    assert parse_device(value) == expected


def test_list_devices_without_portaudio(no_portaudio, capsys):
    print_devices()
    assert "No microphones found." in capsys.readouterr().out
