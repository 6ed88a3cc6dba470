"""
media/uploads.py -- Pre-signed S3 upload URLs for post images.

The browser uploads images straight to the bucket: the API only signs a PUT
URL for a fresh, unguessable object key and hands it back. Nothing is proxied
through this process.

Object keys look like "<21 random chars>-<epoch ms>.jpeg". The signed URL is
valid for Settings.upload_url_expires seconds and pins Content-Type to
image/jpeg, so the client must send that header on the PUT.

Signing is a local HMAC computation in botocore -- no network round trip --
but it still runs in the threadpool because boto3 clients are synchronous.
"""

import logging
import time

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from core.config import get_settings
from core.errors import InternalError
from core.ids import new_id

logger = logging.getLogger("inkwell.media")

CONTENT_TYPE = "image/jpeg"


def new_object_key() -> str:
    return f"{new_id()}-{int(time.time() * 1000)}.jpeg"


class UploadSigner:
    """Signs PUT URLs against one bucket.

    Args:
        bucket:  Target bucket name.
        expires: URL lifetime in seconds.
        client:  S3 client that does the signing (see from_settings).
    """

    def __init__(self, bucket: str, expires: int, client: BaseClient) -> None:
        self.bucket = bucket
        self.expires = expires
        self._client = client

    @classmethod
    def from_settings(cls) -> "UploadSigner":
        cfg = get_settings()
        client = boto3.client(
            "s3",
            region_name=cfg.aws_region,
            aws_access_key_id=cfg.aws_access_key or None,
            aws_secret_access_key=cfg.aws_secret_access_key or None,
            config=Config(signature_version="s3v4"),
        )
        return cls(bucket=cfg.s3_bucket, expires=cfg.upload_url_expires, client=client)

    def generate_upload_url(self) -> str:
        """Return a pre-signed PUT URL for a new image object."""
        key = new_object_key()
        try:
            return self._client.generate_presigned_url(
                "put_object",
                Params={"Bucket": self.bucket, "Key": key, "ContentType": CONTENT_TYPE},
                ExpiresIn=self.expires,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Could not sign upload URL for %s: %s", key, exc)
            raise InternalError("Could not create an upload URL. Please try again.") from exc
