"""Animation engine: easing, evaluation and timeline sampling."""

from .animator import Animator
from .color import interpolate_color
from .easing import EasingLibrary, get_easing_fn, sample_easing
from .evaluator import evaluate, evaluate_scene, interpolate_number
from .timeline import TimelineSample

__all__ = [
    "Animator",
    "EasingLibrary",
    "TimelineSample",
    "evaluate",
    "evaluate_scene",
    "get_easing_fn",
    "interpolate_color",
    "interpolate_number",
    "sample_easing",
]
