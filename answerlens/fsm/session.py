import uuid
from dataclasses import dataclass, field
from typing import Optional, Union

from answerlens.pipeline.crop import CroppedImage, RawImage
from answerlens.pipeline.geometry import UNSET, CropRect, CropSelection, ScaleFactor, Size
from answerlens.pipeline.submission import SubmissionResult


def _capture_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class CaptureSession:
    """
    Everything one capture owns. Replaced as a whole on every transition;
    a fresh ``capture_id`` marks a new capture.
    """
    capture_id: str = field(default_factory=_capture_id)
    raw: Optional[RawImage] = None
    display: Optional[Size] = None
    draft: Optional[CropRect] = None
    selection: CropSelection = UNSET
    cropped: Optional[CroppedImage] = None
    result: Optional[SubmissionResult] = None

    @property
    def scale(self) -> Optional[ScaleFactor]:
        if self.raw is None or self.display is None:
            return None
        return ScaleFactor.between(self.raw.size, self.display)


# Read-only views of the session, one per machine state.

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Cropping:
    raw: RawImage
    rect: Optional[CropRect]
    scale: Optional[ScaleFactor]


@dataclass(frozen=True)
class Cropped:
    image: CroppedImage


@dataclass(frozen=True)
class Submitting:
    image: CroppedImage


@dataclass(frozen=True)
class Done:
    image: CroppedImage
    result: SubmissionResult


CaptureSessionState = Union[Idle, Cropping, Cropped, Submitting, Done]


def session_view(state: str, session: CaptureSession) -> CaptureSessionState:
    if state == "cropping":
        return Cropping(session.raw, session.draft, session.scale)
    if state == "cropped":
        return Cropped(session.cropped)
    if state == "submitting":
        return Submitting(session.cropped)
    if state == "done":
        return Done(session.cropped, session.result)
    return Idle()
