import logging
from typing import NamedTuple, Optional
from uuid import uuid4

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from devevents.core.errors import DeleteFailedError, UploadFailedError

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class StoredAsset(NamedTuple):
    url: str
    asset_id: str


class S3MediaStore:
    """
    Media host backed by a public-read S3 bucket.

    The asset id handed back from ``upload`` is the object key; it is what
    ``delete`` expects and what events store as ``image_public_id``.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        folder: str = "",
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        public_base_url: Optional[str] = None,
    ):
        self.bucket = bucket
        self.region = region
        self.folder = folder.strip("/")
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None
        # Create a configuration with the correct signature version
        self.config = Config(signature_version="s3v4", region_name=region)
        self.session = aioboto3.Session(
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            region_name=region,
        )

    def build_key(self, content_type: str) -> str:
        name = f"{uuid4()}{EXTENSIONS.get(content_type, '')}"
        return f"{self.folder}/{name}" if self.folder else name

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def upload(self, data: bytes, content_type: str) -> StoredAsset:
        """
        Upload bytes to S3 and return the public URL and object key.

        Raises:
            UploadFailedError: If S3 rejects the upload
        """
        key = self.build_key(content_type)

        async with self.session.client("s3", config=self.config) as s3:
            try:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=data,
                    ContentType=content_type,
                    ACL="public-read",
                )
            except (BotoCoreError, ClientError) as e:
                raise UploadFailedError(str(e)) from e

        url = self.public_url(key)
        logger.info("Uploaded image %s (%d bytes)", key, len(data))
        return StoredAsset(url=url, asset_id=key)

    async def delete(self, asset_id: str) -> None:
        """
        Delete an object from S3.

        Raises:
            DeleteFailedError: If S3 rejects the delete
        """
        async with self.session.client("s3", config=self.config) as s3:
            try:
                await s3.delete_object(Bucket=self.bucket, Key=asset_id)
            except (BotoCoreError, ClientError) as e:
                raise DeleteFailedError(asset_id, str(e)) from e

        logger.info("Deleted image %s", asset_id)
