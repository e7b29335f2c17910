"""Output geometry for each resize mode.

``resolve_geometry`` is a pure function of the source size, the target box and
the mode options. It decides the canvas size, which part of the source is
sampled and where it is painted, and whether the canvas is pre-filled with the
pad background. All rounding is half-up so identical inputs always give the
same pixels.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .models import (
    Anchor,
    CropOptions,
    FitOptions,
    PadOptions,
    ResizeOptions,
    SideOption,
    SideOptions,
    StretchOptions,
    TargetBox,
)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Offsets may be fractional."""

    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> Tuple[float, float, float, float]:
        """(left, upper, right, lower) as used by Pillow."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class Geometry:
    """Resolved drawing instructions for one image."""

    canvas_width: int
    canvas_height: int
    source: Rect
    dest: Rect
    fill_background: bool = False
    background: str = "#ffffff"

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return (self.canvas_width, self.canvas_height)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _dimension(value: float) -> int:
    return max(1, round_half_up(value))


def _target_sides(target: Optional[TargetBox]) -> Tuple[int, int]:
    """Requested width/height, with 0 meaning unconstrained."""
    if target is None:
        return 0, 0
    return target.width or 0, target.height or 0


def anchor_axes(position: Anchor) -> Tuple[str, str]:
    """Split an anchor into its (horizontal, vertical) alignment."""
    horizontal = "center"
    vertical = "center"
    name = position.value if isinstance(position, Anchor) else str(position)
    if name.startswith("top"):
        vertical = "top"
    elif name.startswith("bottom"):
        vertical = "bottom"
    if name.endswith("left"):
        horizontal = "left"
    elif name.endswith("right"):
        horizontal = "right"
    return horizontal, vertical


def _offset(outer: float, inner: float, alignment: str) -> float:
    if alignment in ("left", "top"):
        return 0.0
    if alignment in ("right", "bottom"):
        return float(outer - inner)
    return (outer - inner) / 2


def identity_geometry(width: int, height: int) -> Geometry:
    """Pass the image through unchanged."""
    full = Rect(0, 0, width, height)
    return Geometry(
        canvas_width=width,
        canvas_height=height,
        source=full,
        dest=full,
    )


def _scaled(width: int, height: int, out_width: int, out_height: int) -> Geometry:
    return Geometry(
        canvas_width=out_width,
        canvas_height=out_height,
        source=Rect(0, 0, width, height),
        dest=Rect(0, 0, out_width, out_height),
    )


def _resolve_stretch(width: int, height: int, tw: int, th: int) -> Geometry:
    return _scaled(width, height, tw or width, th or height)


def _resolve_fit(width: int, height: int, tw: int, th: int) -> Geometry:
    if tw and th:
        scale = min(tw / width, th / height)
        return _scaled(width, height, _dimension(width * scale), _dimension(height * scale))
    if tw:
        return _scaled(width, height, tw, _dimension(height * tw / width))
    if th:
        return _scaled(width, height, _dimension(width * th / height), th)
    return identity_geometry(width, height)


def _side_reference(width: int, height: int, side: SideOption) -> int:
    if side == SideOption.WIDTH:
        return width
    if side == SideOption.HEIGHT:
        return height
    if side == SideOption.SHORTEST:
        return min(width, height)
    return max(width, height)


def _resolve_side(
    width: int, height: int, tw: int, th: int, options: SideOptions
) -> Geometry:
    target_side = tw or th
    if not target_side:
        return identity_geometry(width, height)
    scale = target_side / _side_reference(width, height, options.side)
    return _scaled(width, height, _dimension(width * scale), _dimension(height * scale))


def _resolve_pad(
    width: int, height: int, tw: int, th: int, options: PadOptions
) -> Geometry:
    if not (tw or th):
        return identity_geometry(width, height)
    canvas_width = tw or width
    canvas_height = th or height
    scale = min(canvas_width / width, canvas_height / height)
    drawn_width = _dimension(width * scale)
    drawn_height = _dimension(height * scale)
    horizontal, vertical = anchor_axes(options.position)
    return Geometry(
        canvas_width=canvas_width,
        canvas_height=canvas_height,
        source=Rect(0, 0, width, height),
        dest=Rect(
            _offset(canvas_width, drawn_width, horizontal),
            _offset(canvas_height, drawn_height, vertical),
            drawn_width,
            drawn_height,
        ),
        fill_background=True,
        background=options.background,
    )


def _resolve_crop(
    width: int, height: int, tw: int, th: int, options: CropOptions
) -> Geometry:
    if not (tw and th):
        return identity_geometry(width, height)
    scale = max(tw / width, th / height)
    crop_width = min(width, _dimension(tw / scale))
    crop_height = min(height, _dimension(th / scale))
    horizontal, vertical = anchor_axes(options.position)
    sx = _offset(width, crop_width, horizontal)
    sy = _offset(height, crop_height, vertical)
    # Clamp the window to the source bounds
    sx = max(0.0, min(sx, width - crop_width))
    sy = max(0.0, min(sy, height - crop_height))
    return Geometry(
        canvas_width=tw,
        canvas_height=th,
        source=Rect(sx, sy, crop_width, crop_height),
        dest=Rect(0, 0, tw, th),
    )


def would_upscale(
    width: int, height: int, target: Optional[TargetBox], options: ResizeOptions
) -> bool:
    """True when the source already fits inside the requested target."""
    tw, th = _target_sides(target)
    if isinstance(options, SideOptions):
        target_side = tw or th
        if not target_side:
            return False
        return _side_reference(width, height, options.side) <= target_side
    if tw and th:
        return width <= tw and height <= th
    if tw:
        return width <= tw
    if th:
        return height <= th
    return False


def resolve_geometry(
    width: int,
    height: int,
    target: Optional[TargetBox] = None,
    options: Optional[ResizeOptions] = None,
) -> Geometry:
    """
    Compute the drawing geometry for a ``width`` x ``height`` source.

    Args:
        width: Natural width of the source image (> 0)
        height: Natural height of the source image (> 0)
        target: Requested box; unset or zero sides are unconstrained
        options: Mode options (defaults to ``fit``)

    Returns:
        Geometry with canvas size, source/destination rectangles and the
        background fill flag

    Raises:
        ValueError: If the source dimensions are not positive
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid source dimensions: {width}x{height}")

    options = options or FitOptions()
    tw, th = _target_sides(target)

    if isinstance(options, StretchOptions):
        geometry = _resolve_stretch(width, height, tw, th)
    elif isinstance(options, SideOptions):
        geometry = _resolve_side(width, height, tw, th, options)
    elif isinstance(options, PadOptions):
        geometry = _resolve_pad(width, height, tw, th, options)
    elif isinstance(options, CropOptions):
        geometry = _resolve_crop(width, height, tw, th, options)
    else:
        geometry = _resolve_fit(width, height, tw, th)

    if options.no_upscale and would_upscale(width, height, target, options):
        return identity_geometry(width, height)
    return geometry
