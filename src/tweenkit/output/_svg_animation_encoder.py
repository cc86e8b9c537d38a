"""Keyframe-driven SMIL SVG encoder.

Each animated element is emitted as nested groups so every directive owns a
single transform:

    <g opacity filter style>            wrapper, animates opacity
      <g transform="rotate(r px py)">   rotation about the current pivot
        <g translate(p)><g scale><g translate(-p)>
          <shape ...><animate .../></shape>

Shape attributes are animated by children of the shape itself, and every
initial attribute holds the frame-0 value.
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from ..engine import geometry
from ..engine.animator import Animator
from ..engine.easing import EasingLibrary
from ..model import AnimatableProp as P
from ..model import Element, ElementType, Scene, iter_top_level
from ._svg_serializer import (
    EMPTY_PATH,
    document_open,
    group_children,
    serialize_element,
    shape_node,
    wrapper_attrs,
)
from ._svg_shared import _svg_num, _svg_seconds, _svg_tag
from ._svg_tracks import SvgTrack, _tl_animate, _tl_animate_transform, _tl_build_track
from ._tracks import SamplePlan, lossy_easing_warning, plan_samples
from .base import EMPTY_SCENE, ExportWarnings, element_skipped_warning

_POSITION = (P.X, P.WIDTH)
_VERTICAL = (P.Y, P.HEIGHT)
_BOX = (P.X, P.Y, P.WIDTH, P.HEIGHT)

_SHAPE_ATTR_SOURCES: dict[ElementType, dict[str, tuple[P, ...]]] = {
    ElementType.RECT: {
        "x": (P.X,), "y": (P.Y,), "width": (P.WIDTH,), "height": (P.HEIGHT,), "rx": (P.RX,),
    },
    ElementType.CIRCLE: {"cx": _POSITION, "cy": _VERTICAL, "r": (P.WIDTH, P.HEIGHT)},
    ElementType.ELLIPSE: {"cx": _POSITION, "cy": _VERTICAL, "rx": (P.WIDTH,), "ry": (P.HEIGHT,)},
    ElementType.LINE: {"x1": (P.X,), "y1": _VERTICAL, "x2": _POSITION, "y2": _VERTICAL},
    ElementType.POLYGON: {"points": _BOX},
    ElementType.STAR: {"points": _BOX},
    ElementType.TEXT: {"x": (P.X,), "y": (P.Y, P.FONT_SIZE), "font-size": (P.FONT_SIZE,)},
    ElementType.PATH: {"d": (P.D,)},
    ElementType.IMAGE: {"x": (P.X,), "y": (P.Y,), "width": (P.WIDTH,), "height": (P.HEIGHT,)},
}

_PAINT_ATTR_SOURCES: dict[str, tuple[P, ...]] = {
    "fill": (P.FILL_COLOR,),
    "stroke": (P.STROKE_COLOR,),
    "stroke-width": (P.STROKE_WIDTH,),
}

_PIVOT_SOURCES = (*_BOX, P.TRANSFORM_ORIGIN_X, P.TRANSFORM_ORIGIN_Y)
_EFFECT_SOURCES = (P.BLUR, P.SHADOW_X, P.SHADOW_Y, P.SHADOW_BLUR, P.SHADOW_OPACITY, P.SHADOW_COLOR)

VIDEO_SKIPPED = "Video elements are not supported in SVG export and were skipped"
EFFECTS_STATIC = "Animated shadow and blur values are exported as static values in SVG"


@dataclass
class _EncodeContext:
    scene: Scene
    animator: Animator
    easings: EasingLibrary
    warnings: ExportWarnings
    loop: bool
    sampled: bool
    _resolved: dict[tuple[str, float], Element] = field(default_factory=dict)

    @property
    def duration_s(self) -> float:
        return self.scene.total_frames / self.scene.fps

    def resolve(self, element: Element, frame: float) -> Element:
        key = (element.id, frame)
        resolved = self._resolved.get(key)
        if resolved is None:
            resolved = self.animator.resolve(element, frame)
            self._resolved[key] = resolved
        return resolved


def encode_svg_animation(
    scene: Scene,
    animator: Animator,
    easings: EasingLibrary,
    warnings: ExportWarnings,
    loop: bool = True,
    sampled: bool = False,
) -> str:
    """Encode a scene's keyframes into an animated SVG document."""
    context = _EncodeContext(scene, animator, easings, warnings, loop, sampled)
    lookup = {element.id: element for element in scene.elements}

    parts = [
        document_open(
            scene.width, scene.height, {"data-duration": _svg_seconds(context.duration_s)}
        )
    ]
    for element in iter_top_level(scene.elements):
        markup = _tl_element_markup(context, element, lookup, frozenset())
        if markup:
            parts.append(markup)

    if len(parts) == 1:
        warnings.add(EMPTY_SCENE)
    parts.append("</svg>")
    return "\n".join(parts)


def _tl_element_markup(
    context: _EncodeContext,
    element: Element,
    lookup: dict[str, Element],
    visiting: frozenset[str],
) -> str:
    if not element.visible or element.id in visiting:
        return ""
    if element.type == ElementType.VIDEO:
        context.warnings.add(VIDEO_SKIPPED)
        return ""
    try:
        return _tl_animated_markup(context, element, lookup, visiting)
    except ValueError as exc:
        context.warnings.add(element_skipped_warning(element, "SVG", exc))
        return ""


def _tl_animated_markup(
    context: _EncodeContext,
    element: Element,
    lookup: dict[str, Element],
    visiting: frozenset[str],
) -> str:
    track = context.animator.keyframes(element.id)
    base = context.resolve(element, 0)

    if element.type == ElementType.GROUP:
        content = "".join(
            _tl_element_markup(context, child, lookup, visiting | {element.id})
            for child in group_children(element, lookup)
        )
        if not content:
            return ""
        if not track:
            return _svg_tag("g", wrapper_attrs(base), content)
        plan = _tl_plan(context, element)
    elif not track:
        return serialize_element(base, on_warning=context.warnings.add)
    else:
        node = shape_node(base)
        if node is None:
            if element.type == ElementType.PATH:
                context.warnings.add(EMPTY_PATH)
            return ""
        plan = _tl_plan(context, element)
        content = node.render(_tl_attribute_animations(context, element, plan))

    if context.animator.defines(element.id, _EFFECT_SOURCES):
        context.warnings.add(EFFECTS_STATIC)

    content = _tl_scale_groups(context, element, plan, content)
    content = _tl_rotate_group(context, element, plan, content)

    opacity_animation = ""
    if context.animator.defines(element.id, (P.OPACITY,)):
        opacity_track = _tl_track(context, element, plan, lambda el: _svg_num(el.opacity))
        if opacity_track is not None:
            opacity_animation = _tl_animate("opacity", opacity_track, context.duration_s, context.loop)
    attrs = wrapper_attrs(base, with_transform=False)
    if opacity_animation and "opacity" not in attrs:
        attrs = {"opacity": _svg_num(base.opacity), **attrs}
    return _svg_tag("g", attrs, opacity_animation + content)


def _tl_plan(context: _EncodeContext, element: Element) -> SamplePlan:
    track = context.animator.keyframes(element.id)
    if not context.sampled:
        for keyframe in track[:-1]:
            if context.easings.is_lossy(keyframe.easing):
                context.warnings.add(lossy_easing_warning(keyframe.easing, "SVG"))
    return plan_samples(
        track, context.easings, context.sampled, start=0, end=context.scene.total_frames
    )


def _tl_track(
    context: _EncodeContext,
    element: Element,
    plan: SamplePlan,
    getter: Callable[[Element], str | None],
) -> SvgTrack | None:
    return _tl_build_track(
        plan,
        context.animator.keyframes(element.id),
        context.scene.total_frames,
        context.easings,
        lambda frame: getter(context.resolve(element, frame)),
    )


def _tl_node_attr(attribute_name: str) -> Callable[[Element], str | None]:
    def getter(element: Element) -> str | None:
        node = shape_node(element)
        return node.attrs.get(attribute_name) if node is not None else None

    return getter


def _tl_attribute_animations(context: _EncodeContext, element: Element, plan: SamplePlan) -> str:
    sources = {**_SHAPE_ATTR_SOURCES.get(element.type, {}), **_PAINT_ATTR_SOURCES}
    animations = []
    for attribute_name, props in sources.items():
        if not context.animator.defines(element.id, props):
            continue
        track = _tl_track(context, element, plan, _tl_node_attr(attribute_name))
        if track is not None:
            animations.append(_tl_animate(attribute_name, track, context.duration_s, context.loop))
    return "".join(animations)


def _tl_pivot_moves(context: _EncodeContext, element: Element) -> bool:
    return context.animator.defines(element.id, _PIVOT_SOURCES)


def _tl_rotate_group(
    context: _EncodeContext, element: Element, plan: SamplePlan, content: str
) -> str:
    def rotate_value(el: Element) -> str:
        px, py = geometry.pivot(el)
        return f"{_svg_num(el.rotation)} {_svg_num(px)} {_svg_num(py)}"

    rotates = any(context.resolve(element, frame).rotation for frame in plan.frames)
    animated = context.animator.defines(element.id, (P.ROTATION,)) or (
        rotates and _tl_pivot_moves(context, element)
    )
    if not animated:
        if not rotates:
            return content
        return _svg_tag("g", {"transform": f"rotate({rotate_value(context.resolve(element, 0))})"}, content)

    track = _tl_track(context, element, plan, rotate_value)
    animation = _tl_animate_transform("rotate", track, context.duration_s, context.loop)
    return _svg_tag("g", {"transform": f"rotate({track.values[0]})"}, animation + content)


def _tl_scale_groups(
    context: _EncodeContext, element: Element, plan: SamplePlan, content: str
) -> str:
    def pivot_value(sign: float) -> Callable[[Element], str]:
        def getter(el: Element) -> str:
            px, py = geometry.pivot(el)
            return f"{_svg_num(sign * px)} {_svg_num(sign * py)}"

        return getter

    def scale_value(el: Element) -> str:
        sx, sy = geometry.effective_scale(el)
        return f"{_svg_num(sx)} {_svg_num(sy)}"

    scales = any(
        geometry.effective_scale(context.resolve(element, frame)) != (1, 1)
        for frame in plan.frames
    )
    animated = context.animator.defines(element.id, (P.SCALE_X, P.SCALE_Y)) or (
        scales and _tl_pivot_moves(context, element)
    )
    if not scales and not animated:
        return content

    layers = (
        ("translate", pivot_value(-1.0)),
        ("scale", scale_value),
        ("translate", pivot_value(1.0)),
    )
    for transform_type, getter in layers:
        track = _tl_track(context, element, plan, getter)
        attrs = {"transform": f"{transform_type}({track.values[0]})"}
        animation = ""
        if not track.is_constant():
            animation = _tl_animate_transform(transform_type, track, context.duration_s, context.loop)
        content = _svg_tag("g", attrs, animation + content)
    return content
