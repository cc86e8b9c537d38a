"""Tests for the Pillow frame renderer."""

from PIL import Image

from tweenkit.engine import Animator
from tweenkit.model import Element, ElementType, FillEntry, Scene
from tweenkit.render import RenderContext, Renderer
from tweenkit.render.renderer import EMPTY_PATH

RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)


def _red_rect(element_id="box", **kwargs) -> Element:
    kwargs.setdefault("fills", [FillEntry(color="FF0000")])
    return Element(id=element_id, **kwargs)


def _render(elements, width=40, height=40, resolution=1.0, background="FFFFFF", media_frames=None, warnings=None):
    scene = Scene(elements=elements, width=width, height=height, total_frames=0)
    context = RenderContext.for_scene(width, height, resolution, background)
    renderer = Renderer(context, on_warning=warnings.append if warnings is not None else None)
    return renderer.render_frame(Animator(scene).sample(0), media_frames)


def test_rect_is_filled_over_background():
    canvas = _render([_red_rect(x=10, y=10, width=10, height=10)])

    assert canvas.size == (40, 40)
    assert canvas.getpixel((15, 15)) == RED
    assert canvas.getpixel((2, 2)) == WHITE


def test_transparent_background():
    canvas = _render([_red_rect(x=10, y=10, width=10, height=10)], background=None)

    assert canvas.getpixel((2, 2)) == (0, 0, 0, 0)
    assert canvas.getpixel((15, 15)) == RED


def test_resolution_scales_geometry():
    canvas = _render([_red_rect(x=5, y=5, width=10, height=10)], width=20, height=20, resolution=2)

    assert canvas.size == (40, 40)
    assert canvas.getpixel((25, 25)) == RED
    assert canvas.getpixel((8, 8)) == WHITE


def test_opacity_blends_with_background():
    canvas = _render([_red_rect(x=0, y=0, width=40, height=40, opacity=0.5)])
    r, g, b, a = canvas.getpixel((20, 20))

    assert r == 255
    assert 125 <= g <= 129
    assert g == b
    assert a == 255


def test_group_children_render_once_through_group():
    """A child is painted by its group, so group opacity applies to it."""
    elements = [
        Element(id="group", type=ElementType.GROUP, child_ids=["box"], opacity=0.5),
        _red_rect(x=0, y=0, width=40, height=40),
    ]
    r, g, _, _ = _render(elements).getpixel((20, 20))

    assert r == 255
    assert 125 <= g <= 129


def test_hidden_elements_are_not_drawn():
    canvas = _render([_red_rect(x=0, y=0, width=40, height=40, visible=False)])
    assert canvas.getpixel((20, 20)) == WHITE


def test_rotation_about_center():
    """A wide bar rotated a quarter turn about its center becomes tall."""
    canvas = _render([_red_rect(x=0, y=15, width=40, height=10, rotation=90)])

    assert canvas.getpixel((20, 3)) == RED
    assert canvas.getpixel((3, 20)) == WHITE


def test_evenodd_path_leaves_a_hole():
    d = "M0 0 L30 0 L30 30 L0 30 Z M10 10 L20 10 L20 20 L10 20 Z"
    evenodd = _render([_red_rect(type=ElementType.PATH, d=d, closed=True, fill_rule="evenodd")])
    nonzero = _render([_red_rect(type=ElementType.PATH, d=d, closed=True)])

    assert evenodd.getpixel((5, 5)) == RED
    assert evenodd.getpixel((15, 15)) == WHITE
    assert nonzero.getpixel((15, 15)) == RED


def test_malformed_path_is_reported_not_raised():
    warnings = []
    canvas = _render([_red_rect(type=ElementType.PATH, d="M0 0 A1 1 0 0 1 5 5")], warnings=warnings)

    assert canvas.getpixel((2, 2)) == WHITE
    assert len(warnings) == 1
    assert warnings[0].startswith("Malformed path data was not drawn")


def test_missing_image_draws_placeholder():
    warnings = []
    element = Element(id="img", type=ElementType.IMAGE, x=0, y=0, width=10, height=10, href="does-not-exist.png")
    canvas = _render([element], warnings=warnings)

    assert canvas.getpixel((5, 5)) == (17, 17, 17, 255)
    assert len(warnings) == 1


def test_video_frame_is_fitted_into_box():
    clip = Element(id="clip", type=ElementType.VIDEO, x=0, y=0, width=20, height=10, fit="fill")
    frame = Image.new("RGBA", (4, 4), (0, 0, 255, 255))

    canvas = _render([clip], media_frames={"clip": frame})

    assert canvas.getpixel((15, 5)) == (0, 0, 255, 255)
    assert canvas.getpixel((25, 5)) == WHITE


def test_canvas_is_reused_between_frames():
    scene = Scene(elements=[_red_rect(x=0, y=0, width=5, height=5)], width=10, height=10)
    renderer = Renderer(RenderContext.for_scene(10, 10))
    animator = Animator(scene)

    first = renderer.render_frame(animator.sample(0))
    second = renderer.render_frame(animator.sample(1))

    assert first is second is renderer.canvas


def test_path_without_data_is_reported():
    warnings = []
    canvas = _render([_red_rect(type=ElementType.PATH, d="  ")], warnings=warnings)

    assert canvas.getpixel((2, 2)) == WHITE
    assert warnings == [EMPTY_PATH]
