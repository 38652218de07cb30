from dataclasses import dataclass, replace
from enum import Enum
from typing import Union


class Space(str, Enum):
    """Coordinate space a rectangle is measured in."""
    DISPLAY = "display"  # rendered (possibly scaled) image element
    NATIVE = "native"    # source pixels


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Size must be positive, got {self.width}x{self.height}")


@dataclass(frozen=True)
class ScaleFactor:
    """Ratio between native and display dimensions."""
    scale_x: float
    scale_y: float

    @classmethod
    def between(cls, native: Size, display: Size) -> "ScaleFactor":
        return cls(native.width / display.width, native.height / display.height)


@dataclass(frozen=True)
class CropRect:
    """
    Crop rectangle tagged with the space it lives in and the size of that
    space at the moment it was measured.
    """
    x: float
    y: float
    width: float
    height: float
    space: Space
    bounds: Size

    def clamp(self) -> "CropRect":
        """
        Fit the rectangle inside [0, bounds.width] x [0, bounds.height].
        Width or height may end up zero; export rejects that case.
        """
        x1 = min(max(0.0, self.x), self.bounds.width)
        y1 = min(max(0.0, self.y), self.bounds.height)
        x2 = min(max(x1, self.x + self.width), self.bounds.width)
        y2 = min(max(y1, self.y + self.height), self.bounds.height)
        return replace(self, x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


class Unset:
    """Crop selection before the widget has finalized any rectangle."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = Unset()

CropSelection = Union[Unset, CropRect]


def display_rect(x, y, width, height, display: Size) -> CropRect:
    return CropRect(x, y, width, height, Space.DISPLAY, display)
