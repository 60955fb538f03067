"""
Generation lifecycle models
"""

import base64
from datetime import datetime
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from gen3d.models.enums import Backend, ImageEncoding, JobStatus, TERMINAL_STATUSES


class EncodedImage(BaseModel):
    """A user-selected file read into memory, ready for either transport"""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Original filename")
    content_type: str = Field(..., description="Guessed MIME type")
    data: bytes = Field(..., repr=False, description="Raw file contents")
    encoding: ImageEncoding = ImageEncoding.DATA_URI

    @property
    def data_uri(self) -> str:
        """Base64 data URI for JSON-bodied vendors"""
        b64 = base64.b64encode(self.data).decode("utf-8")
        return f"data:{self.content_type};base64,{b64}"

    def as_multipart(self, field: str) -> Dict[str, Tuple[str, bytes, str]]:
        """httpx ``files`` mapping for multipart-bodied vendors"""
        return {field: (self.filename, self.data, self.content_type)}

    @property
    def payload(self) -> Union[bytes, str]:
        """The representation selected by ``encoding``"""
        if self.encoding == ImageEncoding.MULTIPART:
            return self.data
        return self.data_uri


class GenerationRequest(BaseModel):
    """One user-initiated submission. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    image_data: Union[bytes, str] = Field(..., repr=False)
    backend: Backend
    created_at: datetime = Field(default_factory=datetime.utcnow)


class GenerationJob(BaseModel):
    """Vendor-tracked job as seen by the client"""

    model_config = ConfigDict(frozen=True)

    backend: Backend
    id: Optional[str] = Field(None, description="Vendor job id (absent for synchronous backends)")
    poll_url: Optional[str] = Field(None, description="Vendor-returned status URL")
    status: JobStatus = JobStatus.PENDING
    raw_status: Optional[str] = Field(None, description="Status string as the vendor reported it")
    result_url: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
