import cv2
import logging
import numpy as np
from dataclasses import dataclass
from typing import Tuple

from answerlens.errors import ImageDecodeError, ImageEncodeError, InvalidRegion
from answerlens.pipeline.geometry import CropRect, ScaleFactor, Size, Space


@dataclass(frozen=True)
class RawImage:
    """Encoded image as supplied by the file input, plus its natural size."""
    data: bytes
    width: int
    height: int

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    @classmethod
    def from_bytes(cls, data: bytes) -> "RawImage":
        pixels = decode(data)
        h, w = pixels.shape[:2]
        return cls(data=bytes(data), width=w, height=h)


@dataclass(frozen=True)
class CroppedImage:
    """JPEG bytes of the exported region at native resolution."""
    data: bytes
    width: int
    height: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


def decode(data: bytes) -> np.ndarray:
    if not data:
        raise ImageDecodeError("Empty image data")
    buf = np.frombuffer(data, dtype=np.uint8)
    pixels = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if pixels is None or pixels.size == 0:
        raise ImageDecodeError("Image data could not be decoded")
    return pixels


class Cropper:
    """
    Maps crop rectangles from display space to native pixels and renders
    the selected region into a JPEG.
    """

    def __init__(self, jpeg_quality: int = 92, default_fraction: float = 0.8):
        self.log = logging.getLogger("Cropper")
        self.jpeg_quality = jpeg_quality
        self.default_fraction = default_fraction

    def default_crop(self, display: Size) -> CropRect:
        """Central rectangle covering ``default_fraction`` of each axis."""
        margin = (1.0 - self.default_fraction) / 2
        return CropRect(
            display.width * margin,
            display.height * margin,
            display.width * self.default_fraction,
            display.height * self.default_fraction,
            Space.DISPLAY,
            display,
        )

    @staticmethod
    def rescale(rect: CropRect, bounds: Size) -> CropRect:
        """Re-express a display rectangle against a new render size."""
        if rect.space is not Space.DISPLAY:
            raise ValueError("Only display-space rectangles can be rescaled")
        if rect.bounds == bounds:
            return rect
        sx = bounds.width / rect.bounds.width
        sy = bounds.height / rect.bounds.height
        return CropRect(
            rect.x * sx, rect.y * sy, rect.width * sx, rect.height * sy, Space.DISPLAY, bounds
        ).clamp()

    @staticmethod
    def to_native(rect: CropRect, native: Size) -> CropRect:
        """
        Scale a display rectangle into native pixels. The scale always comes
        from the size the rectangle was measured against, so a rectangle
        can never be combined with the factor of another render size.
        Overflow from rounding or the widget is clamped silently.
        """
        if rect.space is not Space.DISPLAY:
            raise ValueError(f"Expected a display-space rectangle, got {rect.space.value}")

        scale = ScaleFactor.between(native, rect.bounds)
        return CropRect(
            rect.x * scale.scale_x,
            rect.y * scale.scale_y,
            rect.width * scale.scale_x,
            rect.height * scale.scale_y,
            Space.NATIVE,
            native,
        ).clamp()

    def export(self, raw: RawImage, rect: CropRect) -> CroppedImage:
        """
        Cut exactly the native rectangle out of the raw image (no resampling)
        and encode it as JPEG. The raw image is left untouched.
        """
        if rect.space is not Space.NATIVE:
            raise ValueError(f"Expected a native-space rectangle, got {rect.space.value}")

        frame = decode(raw.data)
        h, w = frame.shape[:2]

        x1 = min(max(0, round(rect.x)), w)
        y1 = min(max(0, round(rect.y)), h)
        x2 = min(w, x1 + round(rect.width))
        y2 = min(h, y1 + round(rect.height))

        if x1 >= x2 or y1 >= y2:
            raise InvalidRegion(x2 - x1, y2 - y1)

        region = frame[y1:y2, x1:x2]
        ok, encoded = cv2.imencode(".jpg", region, [int(cv2.IMWRITE_JPEG_QUALITY), self.jpeg_quality])
        if not ok:
            raise ImageEncodeError("JPEG encoding of the cropped region failed")

        self.log.info(f"Exported region ({x1},{y1}) {x2 - x1}x{y2 - y1} from {w}x{h}")
        return CroppedImage(data=encoded.tobytes(), width=x2 - x1, height=y2 - y1)
