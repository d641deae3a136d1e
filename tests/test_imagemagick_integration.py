"""End-to-end runs against the real ImageMagick binaries, when installed."""

import io
import shutil

import pytest
from PIL import Image

from firesize.core import ProcessorConfig
from firesize.core.args import ProcessArgs
from firesize.core.classifier import AnimationClassifier
from firesize.core.pipeline import Pipeline

pytestmark = pytest.mark.skipif(
    shutil.which("convert") is None or shutil.which("identify") is None,
    reason="ImageMagick is not installed",
)

PNG_URL = "https://assets.example.com/photo.png"
GIF_URL = "https://assets.example.com/dancing.gif"


def _png_bytes(size=(64, 48)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def _gif_bytes(frames=5, size=(40, 40)) -> bytes:
    images = [Image.new("RGB", size, (index * 50 % 256, 100, 200)) for index in range(frames)]
    buffer = io.BytesIO()
    images[0].save(buffer, format="GIF", save_all=True, append_images=images[1:], duration=80, loop=0)
    return buffer.getvalue()


def test_identify_counts_gif_frames(tmp_path, events):
    gif = tmp_path / "in"
    gif.write_bytes(_gif_bytes(frames=5))
    png = tmp_path / "still"
    png.write_bytes(_png_bytes())

    classifier = AnimationClassifier(events)
    assert classifier.is_animated(gif) is True
    assert classifier.is_animated(png) is False


def test_resizes_still_png(tmp_path, mock_http, events):
    config = ProcessorConfig(workspace_root=tmp_path)
    pipeline = Pipeline.default(config, mock_http({PNG_URL: _png_bytes()}), events)

    result = pipeline.run(ProcessArgs.from_options(PNG_URL, size="32x24!", format="png"))
    try:
        with Image.open(result.path) as img:
            assert img.format == "PNG"
            assert img.size == (32, 24)
    finally:
        result.workspace.cleanup()


def test_animated_source_declared_as_png_stays_animated(tmp_path, mock_http, events):
    config = ProcessorConfig(workspace_root=tmp_path)
    pipeline = Pipeline.default(config, mock_http({GIF_URL: _gif_bytes(frames=4)}), events)

    result = pipeline.run(ProcessArgs.from_options(GIF_URL, size="20x20", format="png"))
    try:
        assert result.args.format == "gif"
        with Image.open(result.path) as img:
            assert img.format == "GIF"
            assert img.n_frames == 4
    finally:
        result.workspace.cleanup()
