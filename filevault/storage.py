import boto3
from botocore.exceptions import BotoCoreError, ClientError

from filevault.config import Settings
from filevault.exceptions import StorageError
from filevault.logging_config import get_logger

logger = get_logger(__name__)


class ObjectStorage:
    """
    Envelopes as opaque bytes in a primary and a backup S3 bucket.

    boto3 calls block, so async callers run these in a worker thread.
    """

    def __init__(self, client, primary_bucket: str, backup_bucket: str):
        self.client = client
        self.primary_bucket = primary_bucket
        self.backup_bucket = backup_bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStorage":
        client = boto3.client(
            "s3",
            region_name=settings.aws_region,
            endpoint_url=settings.s3_endpoint_url
        )
        return cls(client, settings.primary_bucket, settings.backup_bucket)

    def put(self, key: str, data: bytes, bucket: str | None = None) -> None:
        bucket = bucket or self.primary_bucket
        try:
            logger.info(f"Uploading {key} to bucket {bucket}")
            self.client.put_object(Bucket=bucket, Key=key, Body=data)
        except (BotoCoreError, ClientError) as e:
            logger.exception(f"Failed to upload {key} to bucket {bucket}")
            raise StorageError(f"Could not store {key} in {bucket}") from e

    def get(self, key: str, bucket: str | None = None) -> bytes:
        bucket = bucket or self.primary_bucket
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response["Body"].read()
        except (BotoCoreError, ClientError) as e:
            logger.exception(f"Error fetching {key} from bucket {bucket}")
            raise StorageError(f"File not found in bucket {bucket}") from e
