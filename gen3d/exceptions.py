"""
Error taxonomy for the generation lifecycle
"""

from typing import Any, Optional


class GenerationError(Exception):
    """Base class for every error raised while generating or loading a model"""

    kind = "GenerationError"

    def __init__(self, detail: str, backend: Optional[str] = None):
        self.detail = detail
        self.backend = backend
        super().__init__(detail)

    def __str__(self) -> str:
        if self.backend:
            return f"[{self.backend}] {self.detail}"
        return self.detail

    @property
    def user_message(self) -> str:
        """Single status line shown to the user"""
        return f"Error: {self.kind}: {self}"


class EncodingError(GenerationError):
    """The selected file could not be read"""

    kind = "EncodingError"

    @property
    def user_message(self) -> str:
        return f"Error processing image: {self.detail}"


class SubmissionError(GenerationError):
    """The creation request failed or returned a malformed body"""

    kind = "SubmissionError"

    def __init__(
        self,
        detail: str,
        backend: Optional[str] = None,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            detail = f"HTTP {status_code} - {detail}"
        super().__init__(detail, backend)


class PollError(GenerationError):
    """A status check failed in transport or returned an unparseable body"""

    kind = "PollError"

    def __init__(self, detail: str, backend: Optional[str] = None, status_code: Optional[int] = None):
        self.status_code = status_code
        if status_code is not None:
            detail = f"HTTP {status_code} - {detail}"
        super().__init__(detail, backend)


class MissingResultError(GenerationError):
    """A job succeeded but carried no usable asset URL"""

    kind = "MissingResultError"


class ModelLoadError(GenerationError):
    """The asset could not be downloaded or parsed by the viewer"""

    kind = "ModelLoadError"


class ConfigurationError(GenerationError):
    """A required credential or endpoint is not configured"""

    kind = "ConfigurationError"


class GenerationTimeoutError(GenerationError, TimeoutError):
    """Polling exceeded its attempt budget or wall-clock deadline"""

    kind = "TimeoutError"


class VendorJobFailed(GenerationError):
    """The vendor reported a terminal failure or cancellation"""

    kind = "VendorError"
