"""
Exception hierarchy for the capture / crop / submit workflow.

Capture errors are recovered locally: the session keeps its image and the
user is asked to adjust and try again. Submission errors never leave the
pipeline; they are turned into a ``Failure`` result at its boundary.
"""


class AnswerLensError(Exception):
    """Base class for every error raised by this package."""


class CaptureError(AnswerLensError):
    """Recoverable error while preparing a crop."""


class InvalidRegion(CaptureError):
    """The crop rectangle rounds to zero width or height."""

    def __init__(self, width, height):
        self.width = width
        self.height = height
        super().__init__(f"Crop region is empty ({width}x{height}), adjust the selection")


class NoCropSelected(CaptureError):
    """Confirm was requested before the crop widget finalized a rectangle."""

    def __init__(self):
        super().__init__("No crop region selected yet")


class ImageDecodeError(CaptureError):
    """The supplied file could not be decoded as an image."""


class ImageEncodeError(CaptureError):
    """The cropped region could not be encoded as JPEG."""


class SubmissionError(AnswerLensError):
    """A submission could not produce an answer."""

    kind = "unknown"


class TransportFailure(SubmissionError):
    """The request never completed (connection error, timeout)."""

    kind = "transport"


class ServerFailure(SubmissionError):
    """The analysis service answered with a non-success status."""

    kind = "server"

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Analysis service returned HTTP {status_code}")


class StaleResult(AnswerLensError):
    """A submission resolved after its capture was reset or replaced."""

    def __init__(self, capture_id: str, current_id):
        self.capture_id = capture_id
        self.current_id = current_id
        super().__init__(f"Result for capture {capture_id} arrived after it was invalidated")
