"""Integration tests for the object storage against a running MinIO.

These tests verify that MinIO is properly configured and accessible
when running in Docker Compose. Run them with ``pytest -m integration``.
"""
import os
from typing import Final

import boto3
import pytest
from botocore.client import BaseClient
from botocore.exceptions import ClientError
from django.core.files.base import ContentFile

from server.apps.library.infrastructure.storage import ObjectStorage

_TEST_BUCKET: Final = 'resource-hub'
_TEST_FILE_CONTENT: Final = b'Hello from MinIO integration test!'


@pytest.fixture
def minio_settings() -> dict[str, str]:
    """Connection settings for MinIO.

    Returns:
        Endpoint and credentials from the environment.
    """
    return {
        'endpoint_url': os.getenv('MINIO_ENDPOINT', 'http://minio:9000'),
        'access_key': os.getenv('MINIO_ROOT_USER', 'minioadmin'),
        'secret_key': os.getenv('MINIO_ROOT_PASSWORD', 'minioadmin'),
    }


@pytest.fixture
def s3_client(minio_settings: dict[str, str]) -> BaseClient:
    """Create S3 client for MinIO.

    Args:
        minio_settings: Endpoint and credentials.

    Returns:
        Configured boto3 S3 client for MinIO.
    """
    return boto3.client(
        's3',
        endpoint_url=minio_settings['endpoint_url'],
        aws_access_key_id=minio_settings['access_key'],
        aws_secret_access_key=minio_settings['secret_key'],
        region_name='us-east-1',
    )


@pytest.fixture
def test_bucket(s3_client: BaseClient) -> str:
    """Ensure test bucket exists.

    Args:
        s3_client: boto3 S3 client.

    Returns:
        Name of the test bucket.
    """
    try:
        s3_client.head_bucket(Bucket=_TEST_BUCKET)
    except ClientError:
        s3_client.create_bucket(Bucket=_TEST_BUCKET)

    return _TEST_BUCKET


@pytest.fixture
def storage(minio_settings: dict[str, str], test_bucket: str) -> ObjectStorage:
    """ObjectStorage pointed at MinIO.

    Args:
        minio_settings: Endpoint and credentials.
        test_bucket: Name of the test bucket.

    Returns:
        ObjectStorage instance.
    """
    return ObjectStorage(
        bucket_name=test_bucket,
        region_name='us-east-1',
        file_overwrite=False,
        querystring_auth=False,
        **minio_settings,
    )


@pytest.mark.integration
def test_s3_client_connection(s3_client: BaseClient) -> None:
    """Test that S3 client can connect to MinIO."""
    response = s3_client.list_buckets()
    assert 'Buckets' in response


@pytest.mark.integration
def test_upload_and_destroy(
    storage: ObjectStorage,
    s3_client: BaseClient,
    test_bucket: str,
) -> None:
    """Test an uploaded object can be read back and destroyed.

    Args:
        storage: ObjectStorage against MinIO.
        s3_client: boto3 S3 client.
        test_bucket: Name of the test bucket.
    """
    stored = storage.upload(
        ContentFile(_TEST_FILE_CONTENT, name='greeting.txt'),
        'integration',
    )

    response = s3_client.get_object(Bucket=test_bucket, Key=stored.public_id)
    assert response['Body'].read() == _TEST_FILE_CONTENT
    assert stored.size == len(_TEST_FILE_CONTENT)

    storage.destroy(stored.public_id)

    with pytest.raises(ClientError) as exc_info:
        s3_client.head_object(Bucket=test_bucket, Key=stored.public_id)

    assert exc_info.value.response['Error']['Code'] == '404'


@pytest.mark.integration
def test_upload_many(storage: ObjectStorage) -> None:
    """Test a batch upload stores every payload.

    Args:
        storage: ObjectStorage against MinIO.
    """
    stored = storage.upload_many(
        [
            ContentFile(b'one', name='one.txt'),
            ContentFile(b'two', name='two.txt'),
        ],
        'integration',
    )

    assert [item.size for item in stored] == [3, 3]
    for item in stored:
        assert storage.exists(item.public_id)
        storage.destroy(item.public_id)
