import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from devevents.core.errors import (
    PayloadTooLargeError,
    StoreError,
    UnsupportedMediaTypeError,
    UploadFailedError,
)

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_IMAGE_SIZE = 5 * 1024 * 1024

T = TypeVar("T")


@dataclass
class ImageUpload:
    data: bytes
    content_type: Optional[str]
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


def validate_image(image: ImageUpload) -> None:
    """Reject unsupported or oversized images before anything is sent to the media host."""
    if image.content_type not in ALLOWED_IMAGE_TYPES:
        raise UnsupportedMediaTypeError(image.content_type)
    if image.size > MAX_IMAGE_SIZE:
        raise PayloadTooLargeError(image.size, MAX_IMAGE_SIZE)


class AssetReplacementCoordinator:
    """
    Runs "upload new image, commit record, delete old image" for one write.

    The record only ever points at an image that exists on the media host:
    the new image is uploaded before the commit, removed again if the commit
    fails, and the previous image is deleted only after the commit succeeded.
    Deletes are best-effort; a failed delete leaks an object but never fails
    the request.
    """

    def __init__(self, media_store, upload_timeout: Optional[float] = None):
        self.media_store = media_store
        self.upload_timeout = upload_timeout

    async def replace(
        self,
        image: Optional[ImageUpload],
        current_asset_id: Optional[str],
        commit: Callable[[Dict[str, Any]], Awaitable[T]],
    ) -> T:
        """
        Commit a record write, attaching ``image`` if one was supplied.

        ``commit`` receives the image fields to persist alongside the rest of
        the update (empty when there is no new image) and returns the stored
        record. Its exceptions are re-raised unchanged after the rollback.
        """
        if image is None:
            return await commit({})

        validate_image(image)
        uploaded = await self._upload(image)

        try:
            result = await commit(
                {"image": uploaded.url, "image_public_id": uploaded.asset_id}
            )
        except Exception as e:
            if isinstance(e, StoreError) and e.outcome_unknown:
                # The write may have landed; deleting could leave it dangling
                logger.error(
                    "Commit outcome unknown, keeping uploaded image %s", uploaded.asset_id
                )
            else:
                await self._discard(uploaded.asset_id, "rollback after failed commit")
            raise

        if current_asset_id and current_asset_id != uploaded.asset_id:
            await self._discard(current_asset_id, "superseded")

        return result

    async def _upload(self, image: ImageUpload):
        try:
            if self.upload_timeout:
                return await asyncio.wait_for(
                    self.media_store.upload(image.data, image.content_type),
                    timeout=self.upload_timeout,
                )
            return await self.media_store.upload(image.data, image.content_type)
        except asyncio.TimeoutError as e:
            logger.error("Image upload timed out after %ss", self.upload_timeout)
            raise UploadFailedError(f"upload timed out after {self.upload_timeout}s") from e
        except UploadFailedError as e:
            logger.error("Image upload failed: %s", e.detail)
            raise
        except Exception as e:
            logger.exception("Image upload failed")
            raise UploadFailedError(str(e)) from e

    async def _discard(self, asset_id: str, reason: str) -> None:
        try:
            await self.media_store.delete(asset_id)
        except Exception as e:
            logger.warning("Failed to delete image %s (%s): %s", asset_id, reason, e)
        else:
            logger.info("Deleted image %s (%s)", asset_id, reason)
