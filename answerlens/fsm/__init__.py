from .capture_fsm import CaptureFSM
from .session import (
    CaptureSession,
    CaptureSessionState,
    Cropped,
    Cropping,
    Done,
    Idle,
    Submitting,
    session_view,
)

__all__ = [
    "CaptureFSM",
    "CaptureSession",
    "CaptureSessionState",
    "Idle",
    "Cropping",
    "Cropped",
    "Submitting",
    "Done",
    "session_view",
]
