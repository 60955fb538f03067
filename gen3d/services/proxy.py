"""
Replicate Proxy Service
Attaches the server-side credential and relays Replicate calls unchanged
"""

import logging
import re
from typing import Any, Optional, Tuple

import httpx

from gen3d.config import settings
from gen3d.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PREDICTION_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


class ReplicateProxy:
    """
    Server-side relay for the Replicate predictions API.

    Both calls return ``(status_code, body)`` mirroring the vendor; the
    router decides headers and serialization.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
    ):
        self.http_client = http_client
        self.api_key = api_key if api_key is not None else settings.replicate_api_key
        self.api_url = (api_url or settings.replicate_api_url).rstrip("/")

    def ensure_configured(self) -> None:
        """Raise ConfigurationError when the server-side secret is unset"""
        if not self.api_key:
            logger.error("Replicate API key not set in the server environment")
            raise ConfigurationError("Server configuration error: Replicate API key missing.")

    def _headers(self) -> dict:
        self.ensure_configured()
        return {
            "Authorization": f"Token {self.api_key}",
            "Content-Type": "application/json",
        }

    async def create_prediction(self, body: Any) -> Tuple[int, Any]:
        """Forward a caller-defined creation body verbatim"""
        headers = self._headers()
        logger.info(f"Forwarding prediction request to {self.api_url}")
        response = await self.http_client.post(self.api_url, headers=headers, json=body)
        return response.status_code, self._body(response)

    async def get_prediction(self, prediction_id: str) -> Tuple[int, Any]:
        """Fetch prediction status on behalf of a client that holds no credential"""
        headers = self._headers()
        if not isinstance(prediction_id, str) or not PREDICTION_ID_PATTERN.match(prediction_id):
            raise ValueError(f"Invalid prediction id: {prediction_id!r}")

        logger.debug(f"Fetching prediction {prediction_id}")
        response = await self.http_client.get(f"{self.api_url}/{prediction_id}", headers=headers)
        return response.status_code, self._body(response)

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"detail": response.text}
