import httpx
import logging
from dataclasses import dataclass
from typing import Optional, Union

from answerlens.errors import ServerFailure, SubmissionError, TransportFailure
from answerlens.pipeline.crop import CroppedImage


@dataclass(frozen=True)
class Pending:
    pass


@dataclass(frozen=True)
class Success:
    text: str


@dataclass(frozen=True)
class Failure:
    reason: str
    kind: str = "unknown"


SubmissionResult = Union[Pending, Success, Failure]

PENDING = Pending()


class AnalysisClient:
    """
    Sends a cropped image to the analysis endpoint as a single multipart
    POST and classifies the outcome. One attempt per call, no retry.
    """

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = 30.0,
        field_name: str = "image",
        filename: str = "capture.jpg",
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        :param endpoint_url: Full URL the image is POSTed to.
        :param timeout: Request timeout in seconds.
        :param field_name: Name of the multipart file field.
        :param filename: Filename announced for the uploaded part.
        :param client: Optional pre-built client (tests pass one backed by a mock transport).
        """
        self.log = logging.getLogger("AnalysisClient")
        self.endpoint_url = endpoint_url
        self.field_name = field_name
        self.filename = filename
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def submit(self, image: CroppedImage) -> SubmissionResult:
        try:
            text = await self._post(image)
        except SubmissionError as e:
            self.log.warning(f"Submission failed ({e.kind}): {e}")
            return Failure(reason=self._describe(e), kind=e.kind)

        self.log.info(f"Submission succeeded ({len(text)} chars)")
        return Success(text)

    async def _post(self, image: CroppedImage) -> str:
        files = {self.field_name: (self.filename, image.data, "image/jpeg")}
        try:
            response = await self.client.post(self.endpoint_url, files=files)
        except httpx.TimeoutException as e:
            raise TransportFailure("timeout") from e
        except httpx.HTTPError as e:
            raise TransportFailure(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise ServerFailure(response.status_code)
        return response.text

    @staticmethod
    def _describe(error: SubmissionError) -> str:
        if isinstance(error, ServerFailure):
            return f"Analysis service returned HTTP {error.status_code}"
        if isinstance(error.__cause__, httpx.TimeoutException):
            return "Analysis service timed out"
        return "Could not reach analysis service"

    async def aclose(self):
        if self._owns_client:
            await self.client.aclose()
