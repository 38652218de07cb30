"""
Pipeline package for AnswerLens.

This package contains the components responsible for:
- Describing crop rectangles in display and native space (geometry)
- Mapping a crop to native pixels and exporting it as JPEG (crop)
- Sending the exported crop to the analysis service (submission)
- Driving one capture from image load to result (controller)

The controller is imported from ``answerlens.pipeline.controller`` directly;
it depends on ``answerlens.fsm``, which itself builds on this package.
"""

from .crop import Cropper, CroppedImage, RawImage
from .geometry import UNSET, CropRect, ScaleFactor, Size, Space
from .submission import AnalysisClient, Failure, Pending, Success


__all__ = [
    "Cropper",
    "CroppedImage",
    "RawImage",
    "CropRect",
    "ScaleFactor",
    "Size",
    "Space",
    "UNSET",
    "AnalysisClient",
    "Pending",
    "Success",
    "Failure",
]
