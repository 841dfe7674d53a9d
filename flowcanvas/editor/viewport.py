"""Viewport state and pointer gestures for the flow canvas."""

from dataclasses import dataclass
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

MIN_SCALE = 0.5
MAX_SCALE = 1.6
ZOOM_STEP = 0.1
DEFAULT_PAN = (160.0, 120.0)
MINIMAP_SCALE = 0.12
PRIMARY_BUTTON = 0


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


@dataclass(frozen=True)
class Point:
    """A position in screen or world space."""
    x: float
    y: float

    def __add__(self, other: "Point") -> "Point":
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point") -> "Point":
        return Point(self.x - other.x, self.y - other.y)

    def distance_to(self, other: "Point") -> float:
        """Calculate distance to another position."""
        return ((self.x - other.x) ** 2 + (self.y - other.y) ** 2) ** 0.5


@dataclass(frozen=True)
class Rect:
    """Bounding box of the canvas element in screen space."""
    left: float
    top: float
    width: float
    height: float

    @property
    def origin(self) -> Point:
        return Point(self.left, self.top)

    def contains(self, point: Point) -> bool:
        """Check if point is inside the box."""
        return (
            self.left <= point.x <= self.left + self.width and
            self.top <= point.y <= self.top + self.height
        )


class PanGesture:
    """A single background drag that pans the viewport.

    Created by :meth:`Viewport.begin_pan`. The pan is recomputed from the
    cumulative pointer delta on every move. Use it as a context manager,
    or call :meth:`end`, so the viewport releases it.
    """

    def __init__(self, viewport: "Viewport", start: Point):
        self._viewport = viewport
        self._start = start
        self._start_pan = viewport.pan
        self.active = True

    def move(self, pointer: Point) -> Point:
        if not self.active:
            return self._viewport.pan
        delta = pointer - self._start
        self._viewport.pan = self._start_pan + delta
        return self._viewport.pan

    def end(self) -> None:
        if not self.active:
            return
        self.active = False
        self._viewport._release(self)

    def __enter__(self) -> "PanGesture":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()


class Viewport:
    """Pan/zoom state of one editing session. Never persisted with the flow."""

    def __init__(
        self,
        scale: float = 1.0,
        pan: Optional[Point] = None,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
        zoom_step: float = ZOOM_STEP,
    ):
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.zoom_step = zoom_step
        self.scale = clamp(scale, min_scale, max_scale)
        self.pan = pan if pan is not None else Point(*DEFAULT_PAN)
        self._gesture: Optional[PanGesture] = None

    @property
    def is_panning(self) -> bool:
        return self._gesture is not None

    def to_world(self, pointer: Point, canvas: Rect) -> Point:
        """Map a screen-space pointer to flow-local coordinates."""
        local = pointer - canvas.origin - self.pan
        return Point(local.x / self.scale, local.y / self.scale)

    def to_screen(self, world: Point, canvas: Rect) -> Point:
        """Inverse of :meth:`to_world`."""
        scaled = Point(world.x * self.scale, world.y * self.scale)
        return scaled + self.pan + canvas.origin

    def screen_delta_to_world(self, delta: Point) -> Point:
        return Point(delta.x / self.scale, delta.y / self.scale)

    def _set_scale(self, value: float) -> float:
        # round to avoid accumulating float drift across repeated steps
        self.scale = round(clamp(value, self.min_scale, self.max_scale), 4)
        return self.scale

    def zoom_in(self) -> float:
        return self._set_scale(self.scale + self.zoom_step)

    def zoom_out(self) -> float:
        return self._set_scale(self.scale - self.zoom_step)

    def reset_zoom(self) -> float:
        return self._set_scale(1.0)

    def begin_pan(
        self,
        pointer: Point,
        button: int = PRIMARY_BUTTON,
        on_background: bool = True,
    ) -> Optional[PanGesture]:
        """Start panning, or return None when the press should not pan.

        Only a primary-button press on empty canvas background pans; presses
        on nodes or controls belong to other gestures.
        """
        if button != PRIMARY_BUTTON or not on_background:
            return None
        if self._gesture is not None:
            self._gesture.end()
        self._gesture = PanGesture(self, pointer)
        return self._gesture

    def _release(self, gesture: PanGesture) -> None:
        if self._gesture is gesture:
            self._gesture = None

    def teardown(self) -> None:
        """Release any live gesture."""
        if self._gesture is not None:
            logger.debug("pan_gesture_released_on_teardown")
            self._gesture.end()

    def minimap_transform(self) -> str:
        """CSS-style transform of the viewport frame drawn on the minimap."""
        return (
            f"translate({-self.pan.x * MINIMAP_SCALE}px, {-self.pan.y * MINIMAP_SCALE}px) "
            f"scale({self.scale * MINIMAP_SCALE})"
        )
