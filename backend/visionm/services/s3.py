"""Object storage for dataset files (any S3-compatible endpoint)."""
import logging
import posixpath

import boto3
from botocore.exceptions import ClientError

from visionm.core.config import S3_ACCESS_KEY, S3_SECRET_KEY, S3_ENDPOINT, S3_BUCKET, S3_REGION

logger = logging.getLogger(__name__)

_client = None


def _get_client():
    global _client
    if _client is None:
        _client = boto3.client(
            "s3",
            endpoint_url=S3_ENDPOINT,
            aws_access_key_id=S3_ACCESS_KEY,
            aws_secret_access_key=S3_SECRET_KEY,
            region_name=S3_REGION,
        )
    return _client


def dataset_key(company_id: str, project_id: str, dataset_id: str, filename: str) -> str:
    """`{company}/{project}/{dataset}/{filename}`; directory parts of the filename are dropped."""
    name = posixpath.basename(filename.replace("\\", "/")) or "file"
    return f"{company_id}/{project_id}/{dataset_id}/{name}"


def upload_bytes(key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
    """Blocking put into the dataset bucket; run it in a worker thread."""
    _get_client().put_object(Bucket=S3_BUCKET, Key=key, Body=data, ContentType=content_type)
    logger.info(f"Stored {key} in {S3_BUCKET} ({len(data)} bytes)")
    return key


def delete_object(key: str):
    """Best-effort removal; a missing or undeletable object is only logged."""
    try:
        _get_client().delete_object(Bucket=S3_BUCKET, Key=key)
    except ClientError as e:
        logger.warning(f"Could not delete {key} from {S3_BUCKET}: {e}")
        return
    logger.info(f"Deleted {key} from {S3_BUCKET}")
