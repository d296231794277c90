"""Easing curves for node animations.

An easing function maps normalised progress *t* in [0, 1] to an eased value
in [0, 1]. The traversal marker uses ``"linear"`` by default - a constant rate is
what keeps the marker in time with the steps it crosses - but any graph
animation accepts a name or a callable:

    graph.animate_position("__marker__", target, 250, easing="ease_out")
    graph.animate_position("__marker__", target, 250, easing=lambda t: t ** 0.5)

Available shapes:

    "linear"      Constant rate (default).
    "ease_in"     Slow start, accelerates.
    "ease_out"    Fast start, decelerates.
    "ease_in_out" Hermite smoothstep S-curve.

All functions satisfy f(0) = 0 and f(1) = 1 and are monotonically non-decreasing.

The session itself only animates with ``"linear"``. The other shapes are part
of the renderer API: any ``GraphRenderer.animate_position`` call and
``TraversalAnimator(easing=...)`` accept them.
"""

from __future__ import annotations

import typing


def linear (t: float) -> float:
    """No transformation - constant rate of change."""
    return t


def ease_in (t: float) -> float:
    """Quadratic ease-in: slow start, accelerates toward the end."""
    return t * t


def ease_out (t: float) -> float:
    """Quadratic ease-out: fast start, decelerates toward the end."""
    return 1.0 - (1.0 - t) * (1.0 - t)


def ease_in_out (t: float) -> float:
    """Hermite smoothstep: smooth start and end, faster in the middle."""
    return t * t * (3.0 - 2.0 * t)


EasingFn = typing.Callable[[float], float]

EASING_FUNCTIONS: typing.Dict[str, EasingFn] = {
    "linear":      linear,
    "ease_in":     ease_in,
    "ease_out":    ease_out,
    "ease_in_out": ease_in_out,
}


def get_easing (shape: typing.Union[str, EasingFn]) -> EasingFn:
    """Return the easing function for *shape* (a name or a callable).

    Raises :class:`ValueError` for unknown string names.
    """
    if callable(shape):
        return shape
    if shape not in EASING_FUNCTIONS:
        available = ", ".join(f'"{k}"' for k in sorted(EASING_FUNCTIONS))
        raise ValueError(
            f"Unknown easing shape {shape!r}. Available shapes: {available}"
        )
    return EASING_FUNCTIONS[shape]


def progress (elapsed: float, duration: float) -> float:
    """Return elapsed / duration clamped to [0, 1]; a non-positive duration is complete."""
    if duration <= 0:
        return 1.0
    return min(max(elapsed / duration, 0.0), 1.0)


def interpolate (
    start: typing.Tuple[float, float],
    end: typing.Tuple[float, float],
    t: float,
    shape: typing.Union[str, EasingFn] = "linear",
) -> typing.Tuple[float, float]:
    """Return the point *t* of the way from *start* to *end* along the eased curve."""
    eased = get_easing(shape)(t)
    return (
        start[0] + (end[0] - start[0]) * eased,
        start[1] + (end[1] - start[1]) * eased,
    )
