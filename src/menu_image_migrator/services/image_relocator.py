"""Relocation of menu item images into the destination S3 bucket."""

import logging
from typing import Any

import httpx
from botocore.exceptions import BotoCoreError, ClientError
from mypy_boto3_s3.client import S3Client

from menu_image_migrator.exceptions import ImageRelocationError
from menu_image_migrator.observability import traced

logger = logging.getLogger(__name__)

IMAGE_CONTENT_TYPE = "image/jpeg"


def format_id(value: Any) -> str:
    """Render an identifier for use in an object key.

    Whole-number doubles, which is how numeric ids often come back from
    MongoDB, are rendered without a decimal part.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_image_key(restaurant_id: Any, item_id: Any) -> str:
    """Build the object key for a menu item image.

    Args:
        restaurant_id: Restaurant the item belongs to
        item_id: Menu item identifier

    Returns:
        Key of the form ``{restaurantId}/{restaurantId}-{itemId}.jpg``
    """
    restaurant = format_id(restaurant_id)
    return f"{restaurant}/{restaurant}-{format_id(item_id)}.jpg"


def build_public_url(bucket_name: str, region: str, key: str) -> str:
    """Build the public URL of an object in a virtual-hosted S3 bucket."""
    return f"https://{bucket_name}.s3.{region}.amazonaws.com/{key}"


class ImageRelocator:
    """Copies images from their original URL into the destination bucket.

    Every image is stored as ``image/jpeg`` under a deterministic key,
    overwriting whatever was there before.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        s3_client: S3Client,
        bucket_name: str,
        region: str,
    ) -> None:
        """Initialize the relocator.

        Args:
            http_client: Client used to download source images
            s3_client: Boto3 S3 client for the destination bucket
            bucket_name: Destination bucket
            region: Region of the destination bucket
        """
        self.http_client = http_client
        self.s3_client = s3_client
        self.bucket_name = bucket_name
        self.region = region

    def item_url(self, restaurant_id: Any, item_id: Any) -> str:
        """Return the URL an item's image has once relocated."""
        return build_public_url(
            self.bucket_name, self.region, build_image_key(restaurant_id, item_id)
        )

    @traced("relocate_image", service_name="menu-image-migrator")
    async def relocate(
        self, restaurant_id: Any, item_id: Any, image_url: str
    ) -> str:
        """Download an image and upload it to the destination bucket.

        Args:
            restaurant_id: Restaurant the item belongs to
            item_id: Menu item identifier
            image_url: Original image URL

        Returns:
            Public URL of the uploaded object

        Raises:
            ImageRelocationError: If the download or the upload fails
        """
        try:
            response = await self.http_client.get(image_url)
            response.raise_for_status()
            body = response.content
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(
                f"Error downloading image for restaurantId {restaurant_id}, item {item_id}: {e}"
            )
            raise ImageRelocationError(restaurant_id, item_id, e) from e

        key = build_image_key(restaurant_id, item_id)

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=IMAGE_CONTENT_TYPE,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"Error uploading image for restaurantId {restaurant_id}, item {item_id}: {e}"
            )
            raise ImageRelocationError(restaurant_id, item_id, e) from e

        return build_public_url(self.bucket_name, self.region, key)
