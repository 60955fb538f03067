"""
Enum definitions for the generation lifecycle
"""

from enum import Enum


class Backend(str, Enum):
    """Image-to-3D vendor"""
    GRADIO = "gradio"        # Public Gradio demo, answers synchronously
    REPLICATE = "replicate"  # Created through the proxy, polled by URL
    MESHY = "meshy"          # Created directly, polled by id


class JobStatus(str, Enum):
    """Status of a vendor-side generation job"""
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"


TERMINAL_STATUSES = frozenset({JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELED})


class ClientState(str, Enum):
    """State of a GenerationClient"""
    IDLE = "idle"
    ENCODING = "encoding"
    SUBMITTING = "submitting"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ImageEncoding(str, Enum):
    """How an encoded image travels to the vendor"""
    DATA_URI = "data_uri"    # base64 data URI inside a JSON body
    MULTIPART = "multipart"  # raw bytes as a multipart form field
