"""Look up registered images through the EC2 API."""

from __future__ import annotations

import logging
from typing import Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from .errors import BundleError

logger = logging.getLogger(__name__)


class ImageInspector:
    """Query the state of a freshly registered image."""

    def __init__(
        self,
        region: str,
        log_callback: Callable[[str], None] | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ) -> None:
        self.region = region
        self._log = log_callback or logger.info

        access_key = aws_access_key_id or None
        secret_key = aws_secret_access_key or None
        if access_key and secret_key:
            self._session = boto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        else:
            self._session = boto3.Session(region_name=region)

        self._ec2_client = self._session.client("ec2")

    def describe(self, image_id: str) -> dict[str, str | None]:
        try:
            response = self._ec2_client.describe_images(ImageIds=[image_id])
        except (BotoCoreError, ClientError) as exc:
            raise BundleError(f"Could not describe image {image_id}: {exc}") from exc

        images = response.get("Images", [])
        if not images:
            raise BundleError(f"Image {image_id} not found in {self.region}.")
        image = images[0]
        return {
            "id": image.get("ImageId"),
            "name": image.get("Name"),
            "state": image.get("State"),
            "architecture": image.get("Architecture"),
        }

    def wait_until_available(self, image_id: str, delay: int = 15, max_attempts: int = 40) -> dict[str, str | None]:
        self._log(f"Waiting for image {image_id} to become available...")
        waiter = self._ec2_client.get_waiter("image_available")
        try:
            waiter.wait(ImageIds=[image_id], WaiterConfig={"Delay": delay, "MaxAttempts": max_attempts})
        except WaiterError as exc:
            raise BundleError(f"Image {image_id} did not become available: {exc}") from exc
        except (BotoCoreError, ClientError) as exc:
            raise BundleError(f"Could not wait for image {image_id}: {exc}") from exc
        return self.describe(image_id)
