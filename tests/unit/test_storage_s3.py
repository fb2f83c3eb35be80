"""Unit tests for the S3 object store adapter."""

from __future__ import annotations

import asyncio
import typing as typ

import boto3
import pytest
from botocore.stub import Stubber

from creel.export.config import S3ConnectionConfig
from creel.storage.errors import ObjectStoreError
from creel.storage.protocol import ObjectStore, UploadDescriptor
from creel.storage.s3 import S3ObjectStore, create_s3_client

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_UPLOAD = UploadDescriptor(
    bucket="events",
    key="2024-07-08/20240708123456.789Z.jsonl.gz",
    body=b"compressed",
    content_type="application/x-ndjson",
    content_encoding="gzip",
)


@pytest.fixture
def s3_client() -> typ.Any:  # noqa: ANN401
    """Return a real boto3 client that never leaves the process."""
    return boto3.session.Session(
        aws_access_key_id="AKIAEXAMPLE",
        aws_secret_access_key="secret",
        region_name="eu-west-1",
    ).client("s3")


@pytest.fixture
def stubber(s3_client: typ.Any) -> cabc.Iterator[Stubber]:  # noqa: ANN401
    """Activate a botocore Stubber on the client."""
    with Stubber(s3_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


class TestS3ObjectStore:
    """Tests for S3ObjectStore.put."""

    def test_satisfies_protocol(self, s3_client: typ.Any) -> None:  # noqa: ANN401
        """The adapter is an ObjectStore."""
        assert isinstance(S3ObjectStore(client=s3_client), ObjectStore)

    def test_requires_config_or_client(self) -> None:
        """Without either there is nothing to upload with."""
        with pytest.raises(TypeError):
            S3ObjectStore()

    def test_put_object_params(
        self,
        s3_client: typ.Any,  # noqa: ANN401
        stubber: Stubber,
    ) -> None:
        """The descriptor maps onto put_object parameters."""
        stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": "events",
                "Key": _UPLOAD.key,
                "Body": b"compressed",
                "ContentType": "application/x-ndjson",
                "ContentEncoding": "gzip",
            },
        )

        asyncio.run(S3ObjectStore(client=s3_client).put(_UPLOAD))

    def test_put_object_with_kms(
        self,
        s3_client: typ.Any,  # noqa: ANN401
        stubber: Stubber,
    ) -> None:
        """Encryption settings are forwarded only when present."""
        upload = UploadDescriptor(
            bucket="events",
            key="k.csv",
            body=b"a",
            content_type="text/csv",
            server_side_encryption="aws:kms",
            sse_kms_key_id="kms-1",
        )
        stubber.add_response(
            "put_object",
            {},
            {
                "Bucket": "events",
                "Key": "k.csv",
                "Body": b"a",
                "ContentType": "text/csv",
                "ServerSideEncryption": "aws:kms",
                "SSEKMSKeyId": "kms-1",
            },
        )

        asyncio.run(S3ObjectStore(client=s3_client).put(upload))

    @pytest.mark.parametrize(
        ("code", "status"),
        [("SlowDown", 503), ("AccessDenied", 403), ("NoSuchBucket", 404)],
    )
    def test_client_errors_are_wrapped(
        self,
        s3_client: typ.Any,  # noqa: ANN401
        stubber: Stubber,
        code: str,
        status: int,
    ) -> None:
        """Service errors keep their code and HTTP status."""
        stubber.add_client_error(
            "put_object",
            service_error_code=code,
            service_message="rejected",
            http_status_code=status,
        )

        with pytest.raises(ObjectStoreError) as exc_info:
            asyncio.run(S3ObjectStore(client=s3_client).put(_UPLOAD))

        assert exc_info.value.code == code
        assert exc_info.value.status_code == status
        assert code in str(exc_info.value)


class TestCreateS3Client:
    """Tests for client construction from connection settings."""

    def test_custom_endpoint_and_path_style(self) -> None:
        """Endpoint, signature and addressing style reach the client."""
        client = create_s3_client(
            S3ConnectionConfig(
                access_key_id="AKIAEXAMPLE",
                secret_access_key="secret",
                endpoint_url="http://minio.local:9000",
                region="us-east-1",
                signature_version="s3v4",
                force_path_style=True,
            )
        )

        assert client.meta.endpoint_url == "http://minio.local:9000"
        assert client.meta.config.signature_version == "s3v4"
        assert client.meta.config.s3["addressing_style"] == "path"

    def test_region_only(self) -> None:
        """A region alone selects the AWS endpoint for that region."""
        client = create_s3_client(
            S3ConnectionConfig(
                access_key_id="AKIAEXAMPLE",
                secret_access_key="secret",
                region="eu-west-1",
            )
        )

        assert client.meta.region_name == "eu-west-1"

    def test_client_never_retries_internally(self) -> None:
        """Each put_object call is a single attempt."""
        client = create_s3_client(
            S3ConnectionConfig(
                access_key_id="AKIAEXAMPLE",
                secret_access_key="secret",
                region="eu-west-1",
            )
        )

        assert client.meta.config.retries["total_max_attempts"] == 1
