"""
KNote Backend — Object Store Client
====================================

What:  Put/get binary blobs by bucket and key, plus the two bucket calls the
       startup handshake needs.
Why:   The service only depends on the small `ObjectStore` contract, so tests
       can swap in an in-memory fake and a different S3-compatible backend
       needs no changes elsewhere.
How:   `S3ObjectStore` wraps a boto3 S3 client pointed at MinIO. botocore
       errors are translated into ObjectStoreError / NotFoundError at this
       boundary.
"""

import logging
from abc import ABC, abstractmethod

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from knote.config import Settings
from knote.exceptions import NotFoundError, ObjectStoreError

logger = logging.getLogger(__name__)

# S3 error codes meaning "no such bucket" / "no such key"
_MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}
_MISSING_KEY_CODES = {"404", "NoSuchKey", "NotFound"}


class ObjectStore(ABC):
    """
    Contract for the external object store.

    Implementations raise:
        NotFoundError:    get_object() on a missing key
        ObjectStoreError: any other failure talking to the store
    """

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        ...

    @abstractmethod
    def make_bucket(self, bucket: str) -> None:
        ...

    @abstractmethod
    def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> bytes:
        ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3ObjectStore(ObjectStore):
    """
    S3-compatible object store backed by boto3.

    Works with MinIO (path-style addressing, s3v4 signatures) as well as AWS S3.
    The boto3 client is synchronous; async callers run these methods in a
    worker thread.
    """

    def __init__(
        self,
        endpoint_url: str,
        access_key: str = "",
        secret_key: str = "",
        timeout: float = 5.0,
        client=None,
    ):
        self.endpoint_url = endpoint_url
        if client is None:
            client_kwargs = {
                "service_name": "s3",
                "endpoint_url": endpoint_url,
                "region_name": "us-east-1",
                "config": Config(
                    signature_version="s3v4",
                    s3={"addressing_style": "path"},
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": 1},
                ),
            }
            if access_key and secret_key:
                client_kwargs["aws_access_key_id"] = access_key
                client_kwargs["aws_secret_access_key"] = secret_key
            client = boto3.client(**client_kwargs)
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        """Build a client for the MINIO_* settings."""
        return cls(
            endpoint_url=settings.minio_endpoint_url,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            timeout=settings.minio_connect_timeout,
        )

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise ObjectStoreError(
                message="Could not check bucket",
                context={"bucket": bucket, "code": _error_code(e)},
            ) from e
        except BotoCoreError as e:
            raise ObjectStoreError(
                message="Could not reach object store",
                context={"endpoint": self.endpoint_url, "error": str(e)},
            ) from e

    def make_bucket(self, bucket: str) -> None:
        try:
            self.client.create_bucket(Bucket=bucket)
        except ClientError as e:
            # Another instance won the bootstrap race
            if _error_code(e) in {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}:
                logger.info("Bucket %s was created concurrently", bucket)
                return
            raise ObjectStoreError(
                message="Could not create bucket",
                context={"bucket": bucket, "code": _error_code(e)},
            ) from e
        except BotoCoreError as e:
            raise ObjectStoreError(
                message="Could not reach object store",
                context={"endpoint": self.endpoint_url, "error": str(e)},
            ) from e

    def put_object(self, bucket: str, key: str, data: bytes, content_type: str) -> None:
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentLength=len(data),
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(
                message="Could not write object",
                context={"bucket": bucket, "key": key, "error": str(e)},
            ) from e

    def get_object(self, bucket: str, key: str) -> bytes:
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                raise NotFoundError(resource="image", resource_id=key) from e
            raise ObjectStoreError(
                message="Could not read object",
                context={"bucket": bucket, "key": key, "code": _error_code(e)},
            ) from e
        except BotoCoreError as e:
            raise ObjectStoreError(
                message="Could not reach object store",
                context={"endpoint": self.endpoint_url, "error": str(e)},
            ) from e
