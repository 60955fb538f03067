"""
Image Encoder
Reads a user-selected file into a transportable representation
"""

import asyncio
import logging
import mimetypes
from pathlib import Path
from typing import BinaryIO, Optional, Union

from gen3d.exceptions import EncodingError
from gen3d.models.enums import ImageEncoding
from gen3d.models.generation import EncodedImage

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes, bytearray, BinaryIO]

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ImageEncoder:
    """
    Converts a file into an EncodedImage.

    No resizing, MIME validation or compression is performed: whatever the
    user selected is passed through as-is. File-type gating belongs to the
    caller.
    """

    async def encode(
        self,
        source: ImageSource,
        encoding: ImageEncoding = ImageEncoding.DATA_URI,
        filename: Optional[str] = None,
    ) -> EncodedImage:
        """
        Read ``source`` and wrap it for transport.

        Args:
            source: Path, raw bytes, or a binary file object
            encoding: Transport the adapter will use
            filename: Name for byte/stream sources (paths use their own)

        Returns:
            EncodedImage carrying the bytes and the chosen encoding

        Raises:
            EncodingError if the underlying read fails
        """
        name = filename or self._source_name(source)
        data = await asyncio.to_thread(self._read, source)

        content_type = mimetypes.guess_type(name)[0] or DEFAULT_CONTENT_TYPE
        logger.debug(f"Encoded {name} ({len(data)} bytes, {content_type}) as {encoding.value}")

        return EncodedImage(
            filename=name,
            content_type=content_type,
            data=data,
            encoding=encoding,
        )

    @staticmethod
    def _source_name(source: ImageSource) -> str:
        if isinstance(source, (str, Path)):
            return Path(source).name
        name = getattr(source, "name", None)
        if isinstance(name, str) and name:
            return Path(name).name
        return "image"

    @staticmethod
    def _read(source: ImageSource) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)

        try:
            if isinstance(source, (str, Path)):
                return Path(source).read_bytes()
            data = source.read()
        except (OSError, ValueError) as e:
            raise EncodingError(f"Could not read file: {e}") from e

        if not isinstance(data, (bytes, bytearray)):
            raise EncodingError(f"Expected binary data, got {type(data).__name__}")
        return bytes(data)


# Global instance
_encoder: Optional[ImageEncoder] = None


def get_image_encoder() -> ImageEncoder:
    """Get or create ImageEncoder instance"""
    global _encoder
    if _encoder is None:
        _encoder = ImageEncoder()
    return _encoder
