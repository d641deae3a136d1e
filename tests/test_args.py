from dataclasses import replace
from pathlib import Path

import pytest

from firesize.core import formats
from firesize.core.args import ProcessArgs, split_request_path
from firesize.core.errors import InvalidArgumentsError

URL = "https://example.com/cat.gif"


def test_no_options_means_no_operations():
    assert ProcessArgs.from_options(URL).has_operations() is False


@pytest.mark.parametrize(
    "options",
    [{"size": "100x100"}, {"gravity": "center"}, {"frame": "0"}, {"quality": "80"}, {"format": "png"}],
)
def test_any_option_is_an_operation(options):
    assert ProcessArgs.from_options(URL, **options).has_operations() is True


def test_format_sets_requested_and_effective_format():
    args = ProcessArgs.from_options(URL, format="MP4")
    assert args.request_format == "mp4"
    assert args.format == "mp4"


def test_command_args_resize_and_format():
    args = ProcessArgs.from_options(URL, size="500x300", format="png")
    cmd_args, out = args.command_args(Path("/w/in"), Path("/w/out"))
    assert cmd_args == ["/w/in", "-resize", "500x300", "/w/out.png"]
    assert out == Path("/w/out.png")


def test_command_args_gravity_crops_to_exact_box():
    args = ProcessArgs.from_options(URL, size="200x100", gravity="north", quality=70)
    cmd_args, out = args.command_args(Path("/w/in"), Path("/w/out"))
    assert cmd_args == [
        "/w/in",
        "-resize",
        "200x100^",
        "-gravity",
        "north",
        "-extent",
        "200x100",
        "-quality",
        "70",
        "/w/out",
    ]
    assert out == Path("/w/out")


def test_command_args_selects_frame():
    args = ProcessArgs.from_options(URL, frame=2, format="jpg")
    cmd_args, _ = args.command_args(Path("/w/in"), Path("/w/out"))
    assert cmd_args[0] == "/w/in[2]"


def test_command_args_follow_effective_format():
    args = formats.apply_animated_override(ProcessArgs.from_options(URL, size="100x", format="mp4"))
    _, out = args.command_args(Path("/w/temp.gif"), Path("/w/out"))
    assert out == Path("/w/out.gif")


def test_args_are_immutable():
    args = ProcessArgs.from_options(URL, format="png")
    with pytest.raises(Exception):
        args.format = "gif"  # type: ignore[misc]
    assert replace(args, format="gif").request_format == "png"


@pytest.mark.parametrize(
    "options",
    [
        {"size": "axb"},
        {"size": "x"},
        {"size": "0x10"},
        {"gravity": "middle"},
        {"frame": "-1"},
        {"quality": "0"},
        {"quality": "abc"},
        {"format": "tiff"},
    ],
)
def test_invalid_options_are_rejected(options):
    with pytest.raises(InvalidArgumentsError):
        ProcessArgs.from_options(URL, **options)


@pytest.mark.parametrize("url", [None, "", "ftp://example.com/a.gif", "example.com/a.gif"])
def test_invalid_urls_are_rejected(url):
    with pytest.raises(InvalidArgumentsError):
        ProcessArgs.from_options(url)


def test_from_path_parses_segments():
    args = ProcessArgs.from_path(["500x300^", "g_center", "frame_0", "q_85", "png"], URL)
    assert args.size == "500x300^"
    assert args.gravity == "center"
    assert args.frame == 0
    assert args.quality == 85
    assert args.request_format == "png"


def test_from_path_rejects_repeated_options():
    with pytest.raises(InvalidArgumentsError):
        ProcessArgs.from_path(["png", "gif"], URL)


def test_split_request_path():
    segments, url = split_request_path("/500x300/png/https://example.com/a/b.gif", "v=2")
    assert segments == ["500x300", "png"]
    assert url == "https://example.com/a/b.gif?v=2"


def test_split_request_path_repairs_collapsed_scheme():
    segments, url = split_request_path("/http:/example.com/a.png")
    assert segments == []
    assert url == "http://example.com/a.png"


def test_split_request_path_requires_url():
    with pytest.raises(InvalidArgumentsError):
        split_request_path("/500x300/png")
