"""S3 adapter for the ObjectStore protocol.

Uploads run boto3's blocking ``put_object`` in a worker thread so the
pipeline can await them. botocore failures are re-raised as
``ObjectStoreError`` carrying the service error code, which the pipeline
uses to categorise retryable failures.

Usage
-----
>>> from creel.export.config import S3ConnectionConfig
>>> store = S3ObjectStore(S3ConnectionConfig.from_env())

"""

from __future__ import annotations

import asyncio
import typing as typ

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from creel.storage.errors import ObjectStoreError

if typ.TYPE_CHECKING:
    from creel.export.config import S3ConnectionConfig
    from creel.storage.protocol import UploadDescriptor


def create_s3_client(config: S3ConnectionConfig) -> typ.Any:  # noqa: ANN401
    """Build a boto3 S3 client from connection settings."""
    # One put_object call makes exactly one HTTP attempt.
    client_options: dict[str, typ.Any] = {
        "retries": {"total_max_attempts": 1, "mode": "standard"},
    }
    if config.signature_version:
        client_options["signature_version"] = config.signature_version
    if config.force_path_style:
        client_options["s3"] = {"addressing_style": "path"}

    session = boto3.session.Session(
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        region_name=config.region,
    )
    return session.client(
        "s3",
        endpoint_url=config.endpoint_url,
        config=Config(**client_options),
    )


def _put_object_params(upload: UploadDescriptor) -> dict[str, typ.Any]:
    params: dict[str, typ.Any] = {
        "Bucket": upload.bucket,
        "Key": upload.key,
        "Body": upload.body,
        "ContentType": upload.content_type,
    }
    if upload.content_encoding is not None:
        params["ContentEncoding"] = upload.content_encoding
    if upload.server_side_encryption is not None:
        params["ServerSideEncryption"] = upload.server_side_encryption
    if upload.sse_kms_key_id is not None:
        params["SSEKMSKeyId"] = upload.sse_kms_key_id
    return params


class S3ObjectStore:
    """Store exported batches in S3 or an S3-compatible service.

    Parameters
    ----------
    config
        Connection settings used to build the client.
    client
        Pre-built boto3 S3 client; overrides ``config`` when given.

    """

    def __init__(
        self,
        config: S3ConnectionConfig | None = None,
        *,
        client: typ.Any = None,  # noqa: ANN401
    ) -> None:
        """Initialise the store, building a client from ``config`` if needed."""
        if client is None:
            if config is None:
                msg = "S3ObjectStore needs either a config or a client"
                raise TypeError(msg)
            client = create_s3_client(config)
        self._client = client

    async def put(self, upload: UploadDescriptor) -> None:
        """Upload one object with ``put_object``.

        Raises
        ------
        ObjectStoreError
            If S3 rejects the request or cannot be reached.

        """
        params = _put_object_params(upload)
        try:
            await asyncio.to_thread(self._client.put_object, **params)
        except ClientError as exc:
            error = exc.response.get("Error", {})
            metadata = exc.response.get("ResponseMetadata", {})
            raise ObjectStoreError.service_error(
                error.get("Code"),
                error.get("Message", str(exc)),
                metadata.get("HTTPStatusCode"),
            ) from exc
        except BotoCoreError as exc:
            raise ObjectStoreError.transport(str(exc)) from exc
