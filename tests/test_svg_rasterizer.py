"""Tests for the markup rasterization strategy."""

import io
import subprocess

import pytest
from PIL import Image

from tweenkit.constants import RSVG_CONVERT_ENV
from tweenkit.engine import Animator
from tweenkit.errors import RasterizerUnavailableError
from tweenkit.model import Element, ElementType, Scene
from tweenkit.output._svg_serializer import serialize_frame
from tweenkit.render import RenderContext, SvgRasterizer, find_rsvg_convert
from tweenkit.render import svg_rasterizer


def test_missing_binary_is_a_setup_error(monkeypatch):
    monkeypatch.setattr(svg_rasterizer.shutil, "which", lambda name: None)

    with pytest.raises(RasterizerUnavailableError, match="rsvg-convert"):
        SvgRasterizer(serialize_frame, RenderContext(10, 10))


def test_binary_lookup_prefers_explicit_then_environment(monkeypatch):
    monkeypatch.setattr(svg_rasterizer.shutil, "which", lambda name: f"/bin/{name}")
    monkeypatch.setenv(RSVG_CONVERT_ENV, "custom-rsvg")

    assert find_rsvg_convert("explicit") == "/bin/explicit"
    assert find_rsvg_convert() == "/bin/custom-rsvg"

    monkeypatch.delenv(RSVG_CONVERT_ENV)
    assert find_rsvg_convert() == "/bin/rsvg-convert"


def test_render_frame_pipes_markup_and_overlays_video(monkeypatch):
    """Markup goes to the rasterizer on stdin; video frames are drawn on top of its output."""
    calls = []

    def fake_run(command, input, capture_output, timeout, check):
        calls.append((command, input.decode("utf-8")))
        buffer = io.BytesIO()
        Image.new("RGBA", (5, 5), (0, 255, 0, 255)).save(buffer, format="PNG")
        return subprocess.CompletedProcess(command, 0, stdout=buffer.getvalue())

    monkeypatch.setattr(svg_rasterizer.shutil, "which", lambda name: "/usr/bin/rsvg-convert")
    monkeypatch.setattr(svg_rasterizer.subprocess, "run", fake_run)

    scene = Scene(
        elements=[Element(id="clip", type=ElementType.VIDEO, x=0, y=0, width=4, height=4, fit="fill")],
        width=10,
        height=10,
        background="FF0000",
    )
    rasterizer = SvgRasterizer(serialize_frame, RenderContext.for_scene(10, 10, background="FF0000"))
    frame = rasterizer.render_frame(
        Animator(scene).sample(0), {"clip": Image.new("RGBA", (1, 1), (0, 0, 255, 255))}
    )

    (command, markup), = calls
    assert command[command.index("--width") + 1] == "10"
    assert 'fill="#f00"' in markup
    assert frame.size == (10, 10)
    assert frame.getpixel((1, 1)) == (0, 0, 255, 255)
    assert frame.getpixel((8, 8)) == (0, 255, 0, 255)
