"""Interfaces the simulation core draws to and reads from."""

import colorsys
from typing import Callable, List, NamedTuple, Protocol, Tuple

# (hue 0-360, saturation %, lightness %)
HSLColor = Tuple[float, float, float]


class RenderSurface(Protocol):
    """Drawable plane. ``width`` and ``height`` may change between frames."""

    @property
    def width(self) -> float: ...

    @property
    def height(self) -> float: ...

    def clear(self) -> None: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: HSLColor) -> None: ...


class ParameterSource(Protocol):
    def get(self, name: str) -> float: ...


class Scheduler(Protocol):
    """Runs ``callback`` once, roughly one frame from now."""

    def request_frame(self, callback: Callable[[], None]) -> None: ...


def hsl_to_rgb(color: HSLColor) -> Tuple[float, float, float]:
    """Convert an HSL triple to an RGB triple in [0, 1]."""
    hue, saturation, lightness = color
    return colorsys.hls_to_rgb((hue % 360.0) / 360.0, lightness / 100.0, saturation / 100.0)


class Rect(NamedTuple):
    x: float
    y: float
    w: float
    h: float
    color: HSLColor


class RecordingSurface:
    """Headless surface that keeps the rects drawn since the last clear."""

    def __init__(self, width: float, height: float):
        self._width = float(width)
        self._height = float(height)
        self.rects: List[Rect] = []
        self.clear_count = 0

    @property
    def width(self) -> float:
        return self._width

    @property
    def height(self) -> float:
        return self._height

    def resize(self, width: float, height: float) -> None:
        self._width = float(width)
        self._height = float(height)

    def clear(self) -> None:
        self.rects = []
        self.clear_count += 1

    def fill_rect(self, x: float, y: float, w: float, h: float, color: HSLColor) -> None:
        self.rects.append(Rect(x, y, w, h, color))
