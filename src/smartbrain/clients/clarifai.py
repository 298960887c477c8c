"""Clarifai face-detection model client.

Learn: One POST per image URL to the model's versioned outputs endpoint.
The personal access token and app coordinates come from Settings; none
of them live in source. The shared httpx.AsyncClient is created in the
app lifespan with the vendor timeout already applied.
"""

from typing import Any

import httpx
import structlog
from fastapi import Depends, Request

from smartbrain.config import Settings, get_settings
from smartbrain.errors import ConfigurationError, RequestTimeout, VendorError

logger = structlog.get_logger()


class ClarifaiClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        pat: str,
        user_id: str,
        app_id: str,
        model_id: str = "face-detection",
        model_version_id: str = "",
        base_url: str = "https://api.clarifai.com",
    ):
        self.http = http
        self.pat = pat
        self.user_id = user_id
        self.app_id = app_id
        self.model_id = model_id
        self.model_version_id = model_version_id
        self.base_url = base_url.rstrip("/")

    @property
    def outputs_url(self) -> str:
        url = f"{self.base_url}/v2/models/{self.model_id}"
        if self.model_version_id:
            url += f"/versions/{self.model_version_id}"
        return url + "/outputs"

    def build_payload(self, image_url: str) -> dict[str, Any]:
        return {
            "user_app_id": {"user_id": self.user_id, "app_id": self.app_id},
            "inputs": [{"data": {"image": {"url": image_url}}}],
        }

    async def detect_faces(self, image_url: str) -> dict[str, Any]:
        """Run the model on image_url and return Clarifai's JSON unchanged."""
        if not self.pat:
            raise ConfigurationError("Clarifai access token is not configured")

        try:
            response = await self.http.post(
                self.outputs_url,
                json=self.build_payload(image_url),
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Key {self.pat}",
                },
            )
        except httpx.TimeoutException as e:
            logger.error("clarifai.timeout", error=str(e))
            raise RequestTimeout("Face detection API timed out") from e
        except httpx.HTTPError as e:
            logger.error("clarifai.request_failed", error=str(e))
            raise VendorError() from e

        if response.is_error:
            logger.error(
                "clarifai.error_status",
                status=response.status_code,
                body=response.text[:500],
            )
            raise VendorError()

        try:
            return response.json()
        except ValueError as e:
            logger.error("clarifai.bad_json", error=str(e))
            raise VendorError() from e


def get_clarifai_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ClarifaiClient:
    """FastAPI dependency — a client bound to the app's shared httpx pool."""
    return ClarifaiClient(
        request.app.state.http_client,
        pat=settings.clarifai_pat,
        user_id=settings.clarifai_user_id,
        app_id=settings.clarifai_app_id,
        model_id=settings.clarifai_model_id,
        model_version_id=settings.clarifai_model_version_id,
        base_url=settings.clarifai_base_url,
    )
