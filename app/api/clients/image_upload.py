"""
Face image hosting through Cloudinary unsigned uploads.
"""

from typing import Optional

import httpx

from app.core.config import settings
from app.core.exceptions import UploadFailed
from app.core.logging import get_logger

logger = get_logger(__name__)

CLOUDINARY_UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/upload"


class CloudinaryUploader:
    """Uploads captured frames and returns their hosted URL."""

    def __init__(
        self,
        cloud_name: Optional[str],
        upload_preset: Optional[str],
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.timeout = timeout
        self._client = client

    @property
    def upload_url(self) -> str:
        return CLOUDINARY_UPLOAD_URL.format(cloud_name=self.cloud_name)

    async def _post(self, files: dict, data: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                self.upload_url, files=files, data=data, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.upload_url, files=files, data=data)

    async def upload(self, image: bytes, filename: str = "face.jpg") -> str:
        """
        Upload an image.

        Returns:
            The secure URL of the hosted image

        Raises:
            UploadFailed: if uploads are not configured or the upload fails
        """
        if not self.cloud_name or not self.upload_preset:
            raise UploadFailed("Image upload is not configured")

        try:
            response = await self._post(
                files={"file": (filename, image, "image/jpeg")},
                data={"upload_preset": self.upload_preset},
            )
            response.raise_for_status()
            url = response.json().get("secure_url")
        except httpx.HTTPError as e:
            logger.error(f"Cloudinary upload error: {str(e)}")
            raise UploadFailed()
        except ValueError as e:
            logger.error(f"Cloudinary returned invalid JSON: {str(e)}")
            raise UploadFailed()

        if not url:
            logger.error("Cloudinary response did not contain a secure_url")
            raise UploadFailed()

        logger.info(f"Uploaded face image ({len(image)} bytes)")
        return url


# Create a default instance
# Set CLOUDINARY_CLOUD_NAME and CLOUDINARY_UPLOAD_PRESET in the environment
image_uploader = CloudinaryUploader(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    upload_preset=settings.CLOUDINARY_UPLOAD_PRESET,
)
