"""Geometry shared by the exporters and renderers.

Bounding boxes and pivots, polygon and star vertex generation, SVG path data
parsing into cubic sub-paths, curve flattening and 2D affine helpers.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Iterator

from ..constants import CURVE_FLATTEN_STEPS
from ..model import Element, ElementType

Point = tuple[float, float]
# Row-major 2x3 affine matrix: x' = a*x + b*y + c, y' = d*x + e*y + f
Affine = tuple[float, float, float, float, float, float]

IDENTITY: Affine = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)


class PathSyntaxError(ValueError):
    """Path data that cannot be turned into geometry."""


# ---------------------------------------------------------------------------
# Bounds, pivots and regular shapes
# ---------------------------------------------------------------------------


def center(element: Element) -> Point:
    return element.x + element.width / 2, element.y + element.height / 2


def pivot(element: Element) -> Point:
    """Absolute rotation/scale pivot from the normalized transform origin."""
    origin = element.transform_origin
    return (
        element.x + origin.x * element.width,
        element.y + origin.y * element.height,
    )


def local_pivot(element: Element) -> Point:
    """Pivot relative to the element's top-left corner."""
    origin = element.transform_origin
    return origin.x * element.width, origin.y * element.height


def effective_scale(element: Element) -> Point:
    """Scale factors with flips folded in as negative scale."""
    return (
        element.scale_x * (-1 if element.flip_x else 1),
        element.scale_y * (-1 if element.flip_y else 1),
    )


def outer_radius(width: float, height: float) -> float:
    return min(width, height) / 2


def polygon_vertices(cx: float, cy: float, radius: float, sides: int) -> list[Point]:
    """Regular polygon with its first vertex pointing straight up."""
    sides = max(3, int(sides))
    points = []
    for i in range(sides):
        angle = (i * 2 * math.pi) / sides - math.pi / 2
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def star_vertices(cx: float, cy: float, outer: float, inner: float, count: int) -> list[Point]:
    """Star outline alternating outer and inner radius, starting at the top."""
    count = max(2, int(count))
    points = []
    for i in range(count * 2):
        radius = outer if i % 2 == 0 else inner
        angle = (i * math.pi) / count - math.pi / 2
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def regular_shape_vertices(element: Element, origin: Point | None = None) -> list[Point]:
    """Vertices of a polygon or star element.

    Coordinates are absolute unless ``origin`` is given, in which case they
    are relative to that point.
    """
    ox, oy = origin if origin is not None else (0.0, 0.0)
    cx, cy = center(element)
    cx -= ox
    cy -= oy
    radius = outer_radius(element.width, element.height)
    if element.type == ElementType.STAR:
        return star_vertices(cx, cy, radius, radius * element.inner_radius, element.star_points)
    return polygon_vertices(cx, cy, radius, element.sides)


def line_endpoints(element: Element) -> tuple[Point, Point]:
    """A line element spans its box horizontally through the vertical middle."""
    mid_y = element.y + element.height / 2
    return (element.x, mid_y), (element.x + element.width, mid_y)


# ---------------------------------------------------------------------------
# Path data
# ---------------------------------------------------------------------------

_TOKEN = re.compile(
    r"(?P<cmd>[A-Za-z])"
    r"|(?P<num>[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
    r"|(?P<sep>[\s,]+)"
    r"|(?P<bad>.)"
)

_ARITY = {"M": 2, "L": 2, "H": 1, "V": 1, "C": 6, "S": 4, "Q": 4, "T": 2, "Z": 0}


@dataclass(frozen=True)
class SubPath:
    """One contiguous run of cubic segments.

    Tangents are stored relative to their vertex, the convention bezier-keyed
    vector formats use.
    """

    vertices: tuple[Point, ...]
    in_tangents: tuple[Point, ...]
    out_tangents: tuple[Point, ...]
    closed: bool = False

    def translated(self, dx: float, dy: float) -> "SubPath":
        return SubPath(
            vertices=tuple((x + dx, y + dy) for x, y in self.vertices),
            in_tangents=self.in_tangents,
            out_tangents=self.out_tangents,
            closed=self.closed,
        )

    def segments(self) -> Iterator[tuple[Point, Point, Point, Point]]:
        """Yield absolute cubic segments ``(p0, c1, c2, p1)``."""
        count = len(self.vertices)
        last = count if self.closed else count - 1
        for index in range(last):
            nxt = (index + 1) % count
            p0 = self.vertices[index]
            p1 = self.vertices[nxt]
            out = self.out_tangents[index]
            inn = self.in_tangents[nxt]
            yield p0, (p0[0] + out[0], p0[1] + out[1]), (p1[0] + inn[0], p1[1] + inn[1]), p1


@dataclass
class _SubPathBuilder:
    vertices: list[Point] = field(default_factory=list)
    ins: list[Point] = field(default_factory=list)
    outs: list[Point] = field(default_factory=list)
    closed: bool = False

    def add_vertex(self, point: Point, handle_in: Point | None = None) -> None:
        self.vertices.append(point)
        self.ins.append(_relative(handle_in, point))
        self.outs.append((0.0, 0.0))

    def set_out_handle(self, handle: Point) -> None:
        self.outs[-1] = _relative(handle, self.vertices[-1])

    def build(self) -> SubPath:
        vertices, ins, outs = list(self.vertices), list(self.ins), list(self.outs)
        # A closed run that returns to its start duplicates the first vertex.
        if self.closed and len(vertices) > 1 and _same_point(vertices[0], vertices[-1]):
            ins[0] = ins.pop()
            vertices.pop()
            outs.pop()
        return SubPath(tuple(vertices), tuple(ins), tuple(outs), self.closed)


def _relative(handle: Point | None, anchor: Point) -> Point:
    if handle is None:
        return 0.0, 0.0
    return handle[0] - anchor[0], handle[1] - anchor[1]


def _same_point(a: Point, b: Point) -> bool:
    return abs(a[0] - b[0]) < 1e-9 and abs(a[1] - b[1]) < 1e-9


def _tokenize(d: str) -> list[tuple[str, list[float]]]:
    commands: list[tuple[str, list[float]]] = []
    for match in _TOKEN.finditer(d):
        kind = match.lastgroup
        if kind == "sep":
            continue
        if kind == "bad":
            raise PathSyntaxError(f"Unexpected character {match.group()!r} in path data")
        if kind == "cmd":
            letter = match.group()
            if letter.upper() not in _ARITY:
                raise PathSyntaxError(f"Unsupported path command {letter!r}")
            commands.append((letter, []))
        else:
            if not commands:
                raise PathSyntaxError("Path data must start with a command")
            commands[-1][1].append(float(match.group()))
    return commands


def parse_path(d: str) -> list[SubPath]:
    """Parse SVG path data (M L H V C S Q T Z, absolute and relative).

    Quadratic segments are raised to cubics. Arc commands are rejected.
    """
    if not d or not d.strip():
        raise PathSyntaxError("Path data is empty")

    commands = _tokenize(d)
    if commands[0][0].upper() != "M":
        raise PathSyntaxError("Path data must start with a moveto command")

    finished: list[SubPath] = []
    current: _SubPathBuilder | None = None
    cx = cy = 0.0
    start = (0.0, 0.0)
    last_cubic_ctrl: Point | None = None
    last_quad_ctrl: Point | None = None

    def ensure_current() -> _SubPathBuilder:
        nonlocal current
        if current is None:
            current = _SubPathBuilder()
            current.add_vertex(start)
        return current

    for letter, args in commands:
        upper = letter.upper()
        relative = letter != upper
        arity = _ARITY[upper]

        if upper == "Z":
            if args:
                raise PathSyntaxError("Closepath takes no arguments")
            if current is not None:
                current.closed = True
                finished.append(current.build())
                current = None
            cx, cy = start
            last_cubic_ctrl = last_quad_ctrl = None
            continue

        if not args or len(args) % arity:
            raise PathSyntaxError(
                f"Command {letter!r} expects a multiple of {arity} numbers, got {len(args)}"
            )

        for offset in range(0, len(args), arity):
            chunk = args[offset:offset + arity]
            bx, by = (cx, cy) if relative else (0.0, 0.0)
            cubic_ctrl: Point | None = None
            quad_ctrl: Point | None = None

            if upper == "M" and offset == 0:
                if current is not None and len(current.vertices) > 1:
                    finished.append(current.build())
                cx, cy = bx + chunk[0], by + chunk[1]
                start = (cx, cy)
                current = _SubPathBuilder()
                current.add_vertex(start)
            elif upper in ("M", "L"):
                cx, cy = bx + chunk[0], by + chunk[1]
                ensure_current().add_vertex((cx, cy))
            elif upper == "H":
                cx = (cx if relative else 0.0) + chunk[0]
                ensure_current().add_vertex((cx, cy))
            elif upper == "V":
                cy = (cy if relative else 0.0) + chunk[0]
                ensure_current().add_vertex((cx, cy))
            else:
                builder = ensure_current()
                p0 = (cx, cy)
                if upper == "C":
                    c1 = (bx + chunk[0], by + chunk[1])
                    c2 = (bx + chunk[2], by + chunk[3])
                    end = (bx + chunk[4], by + chunk[5])
                    cubic_ctrl = c2
                elif upper == "S":
                    c1 = _reflect(last_cubic_ctrl, p0)
                    c2 = (bx + chunk[0], by + chunk[1])
                    end = (bx + chunk[2], by + chunk[3])
                    cubic_ctrl = c2
                else:
                    if upper == "Q":
                        q = (bx + chunk[0], by + chunk[1])
                        end = (bx + chunk[2], by + chunk[3])
                    else:
                        q = _reflect(last_quad_ctrl, p0)
                        end = (bx + chunk[0], by + chunk[1])
                    quad_ctrl = q
                    c1 = (p0[0] + 2 / 3 * (q[0] - p0[0]), p0[1] + 2 / 3 * (q[1] - p0[1]))
                    c2 = (end[0] + 2 / 3 * (q[0] - end[0]), end[1] + 2 / 3 * (q[1] - end[1]))
                builder.set_out_handle(c1)
                builder.add_vertex(end, handle_in=c2)
                cx, cy = end

            last_cubic_ctrl = cubic_ctrl
            last_quad_ctrl = quad_ctrl

    if current is not None and len(current.vertices) > 1:
        finished.append(current.build())
    if not finished:
        raise PathSyntaxError("Path data contains no drawable segments")
    return finished


def _reflect(ctrl: Point | None, about: Point) -> Point:
    if ctrl is None:
        return about
    return 2 * about[0] - ctrl[0], 2 * about[1] - ctrl[1]


def _cubic_point(p0: Point, c1: Point, c2: Point, p1: Point, t: float) -> Point:
    mt = 1 - t
    a = mt * mt * mt
    b = 3 * mt * mt * t
    c = 3 * mt * t * t
    d = t * t * t
    return (
        a * p0[0] + b * c1[0] + c * c2[0] + d * p1[0],
        a * p0[1] + b * c1[1] + c * c2[1] + d * p1[1],
    )


def flatten_subpath(subpath: SubPath, steps: int = CURVE_FLATTEN_STEPS) -> list[Point]:
    """Approximate a sub-path with a polyline; straight segments stay single edges."""
    if not subpath.vertices:
        return []
    points = [subpath.vertices[0]]
    for p0, c1, c2, p1 in subpath.segments():
        straight = _same_point(p0, c1) and _same_point(p1, c2)
        if straight:
            points.append(p1)
            continue
        for step in range(1, steps + 1):
            points.append(_cubic_point(p0, c1, c2, p1, step / steps))
    return points


# ---------------------------------------------------------------------------
# Affine transforms
# ---------------------------------------------------------------------------


def multiply(m: Affine, n: Affine) -> Affine:
    """Compose ``m`` after ``n`` (apply ``n`` first)."""
    a, b, c, d, e, f = m
    g, h, i, j, k, l = n
    return (
        a * g + b * j, a * h + b * k, a * i + b * l + c,
        d * g + e * j, d * h + e * k, d * i + e * l + f,
    )


def translation(tx: float, ty: float) -> Affine:
    return 1.0, 0.0, tx, 0.0, 1.0, ty


def rotation(degrees: float) -> Affine:
    radians = math.radians(degrees)
    cos, sin = math.cos(radians), math.sin(radians)
    return cos, -sin, 0.0, sin, cos, 0.0


def scaling(sx: float, sy: float) -> Affine:
    return sx, 0.0, 0.0, 0.0, sy, 0.0


def transform_about(px: float, py: float, degrees: float, sx: float, sy: float) -> Affine:
    """Rotate and scale about ``(px, py)``; scale is applied before rotation."""
    matrix = translation(-px, -py)
    matrix = multiply(scaling(sx, sy), matrix)
    matrix = multiply(rotation(degrees), matrix)
    return multiply(translation(px, py), matrix)


def invert(m: Affine) -> Affine:
    a, b, c, d, e, f = m
    det = a * e - b * d
    if abs(det) < 1e-12:
        raise ZeroDivisionError("Affine transform is not invertible")
    ia, ib = e / det, -b / det
    id_, ie = -d / det, a / det
    return ia, ib, -(ia * c + ib * f), id_, ie, -(id_ * c + ie * f)


def apply(m: Affine, point: Point) -> Point:
    a, b, c, d, e, f = m
    x, y = point
    return a * x + b * y + c, d * x + e * y + f
