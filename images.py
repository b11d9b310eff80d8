"""
Product image hosting on Cloudinary.

Uploads only happen when the Cloudinary credentials are configured
(`Settings.images_enabled`); otherwise they are skipped with a warning.
"""
import logging
from typing import List

import cloudinary
import cloudinary.uploader
from fastapi import Depends, UploadFile

from config import Settings, get_settings
from errors import ImageUploadError, ValidationError

logger = logging.getLogger(__name__)

UPLOAD_FOLDER = "ecommerce/products"
MAX_IMAGES = 5


class ImageUploader:
    def __init__(self, settings: Settings):
        self.enabled = settings.images_enabled
        if self.enabled:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    def upload(self, file: UploadFile) -> str:
        try:
            result = cloudinary.uploader.upload(
                file.file,
                folder=UPLOAD_FOLDER,
                use_filename=True,
                unique_filename=True,
                filename_override=file.filename,
            )
        except Exception as exc:
            logger.exception("Cloudinary upload of %s failed", file.filename)
            raise ImageUploadError("Failed to upload images") from exc
        finally:
            file.file.close()
        return result["secure_url"]

    def upload_many(self, files: List[UploadFile]) -> List[str]:
        files = [f for f in files if f.filename]
        if not files:
            return []
        if len(files) > MAX_IMAGES:
            raise ValidationError(f"At most {MAX_IMAGES} images can be uploaded at once")
        if not self.enabled:
            logger.warning("Cloudinary not configured; skipping %s image(s)", len(files))
            return []
        return [self.upload(f) for f in files]


def get_image_uploader(settings: Settings = Depends(get_settings)) -> ImageUploader:
    return ImageUploader(settings)
