"""
KNote Backend — S3 Object Store Unit Tests
===========================================

What:  Tests for the boto3-backed ObjectStore.
Why:   botocore errors must become ObjectStoreError / NotFoundError here,
       nowhere else.
How:   botocore's Stubber answers the S3 calls; no MinIO needed. Transport
       failures use a MagicMock client.
"""

import io
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.response import StreamingBody
from botocore.stub import Stubber

from knote.exceptions import NotFoundError, ObjectStoreError
from knote.services.object_store import S3ObjectStore

ENDPOINT = "http://minio.test:9000"


@pytest.fixture
def s3_client():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        endpoint_url=ENDPOINT,
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )


@pytest.fixture
def stubbed(s3_client):
    with Stubber(s3_client) as stubber:
        yield S3ObjectStore(ENDPOINT, client=s3_client), stubber
        stubber.assert_no_pending_responses()


class TestBuckets:
    """Tests for the calls the startup handshake makes."""

    def test_bucket_exists(self, stubbed):
        store, stubber = stubbed
        stubber.add_response("head_bucket", {}, {"Bucket": "image-storage"})

        assert store.bucket_exists("image-storage") is True

    def test_missing_bucket(self, stubbed):
        store, stubber = stubbed
        stubber.add_client_error("head_bucket", service_error_code="404", http_status_code=404)

        assert store.bucket_exists("image-storage") is False

    def test_forbidden_bucket_raises(self, stubbed):
        store, stubber = stubbed
        stubber.add_client_error("head_bucket", service_error_code="403", http_status_code=403)

        with pytest.raises(ObjectStoreError) as exc_info:
            store.bucket_exists("image-storage")
        assert exc_info.value.context["code"] == "403"

    def test_make_bucket(self, stubbed):
        store, stubber = stubbed
        stubber.add_response("create_bucket", {}, {"Bucket": "image-storage"})

        store.make_bucket("image-storage")

    def test_make_bucket_tolerates_concurrent_creation(self, stubbed):
        store, stubber = stubbed
        stubber.add_client_error(
            "create_bucket", service_error_code="BucketAlreadyOwnedByYou", http_status_code=409
        )

        store.make_bucket("image-storage")

    def test_unreachable_endpoint_raises(self):
        client = MagicMock()
        client.head_bucket.side_effect = EndpointConnectionError(endpoint_url=ENDPOINT)
        store = S3ObjectStore(ENDPOINT, client=client)

        with pytest.raises(ObjectStoreError) as exc_info:
            store.bucket_exists("image-storage")
        assert exc_info.value.context["endpoint"] == ENDPOINT


class TestObjects:
    """Tests for blob reads and writes."""

    def test_put_object_sends_length_and_type(self, stubbed):
        store, stubber = stubbed
        stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": "image-storage",
                "Key": "abc.png",
                "Body": b"png-bytes",
                "ContentLength": 9,
                "ContentType": "image/png",
            },
        )

        store.put_object("image-storage", "abc.png", b"png-bytes", "image/png")

    def test_put_object_failure_raises(self, stubbed):
        store, stubber = stubbed
        stubber.add_client_error("put_object", service_error_code="InternalError", http_status_code=500)

        with pytest.raises(ObjectStoreError) as exc_info:
            store.put_object("image-storage", "abc.png", b"x", "image/png")
        assert exc_info.value.context["key"] == "abc.png"

    def test_get_object_returns_bytes(self, stubbed):
        store, stubber = stubbed
        data = b"\x89PNG\r\n\x1a\n"
        stubber.add_response(
            "get_object",
            {"Body": StreamingBody(io.BytesIO(data), len(data))},
            {"Bucket": "image-storage", "Key": "abc.png"},
        )

        assert store.get_object("image-storage", "abc.png") == data

    def test_get_missing_object_raises_not_found(self, stubbed):
        store, stubber = stubbed
        stubber.add_client_error("get_object", service_error_code="NoSuchKey", http_status_code=404)

        with pytest.raises(NotFoundError) as exc_info:
            store.get_object("image-storage", "gone.png")
        assert exc_info.value.context["resource_id"] == "gone.png"

    def test_get_object_other_error_raises(self, stubbed):
        store, stubber = stubbed
        stubber.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)

        with pytest.raises(ObjectStoreError):
            store.get_object("image-storage", "abc.png")
