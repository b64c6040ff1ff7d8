import logging
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from kubeguard_scan.config import RunConfiguration
from kubeguard_scan.errors import BucketError
from kubeguard_scan.providers import aws_s3

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def ensure_bucket(s3, config: RunConfiguration, confirm: Optional[Confirm] = None) -> bool:
    """
    Make sure config.bucket_name exists in config.region.

    Returns True if the bucket had to be created, False if it already existed.
    Interactive runs ask `confirm` before creating; flag-driven runs rely on
    config.create_bucket_if_missing.
    """
    bucket, region = config.bucket_name, config.region
    try:
        exists = aws_s3.bucket_exists(s3, bucket)
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        if code in ("403", "AccessDenied", "Forbidden"):
            raise BucketError(
                f"Access denied checking bucket '{bucket}'.\n"
                f"It may exist but be owned by another account. Choose another name or check permissions."
            )
        raise BucketError(f"Could not check bucket '{bucket}' in {region}: {e}")
    except BotoCoreError as e:
        raise BucketError(f"Could not check bucket '{bucket}' in {region}: {e}")

    if exists:
        logger.info("Bucket %s already exists", bucket)
        return False

    if config.interactive and confirm is not None:
        authorized = confirm(f"Create {bucket} in {region}?")
    else:
        authorized = config.create_bucket_if_missing

    if not authorized:
        raise BucketError(f"Bucket '{bucket}' does not exist and creation was not authorized. Exiting.")

    try:
        aws_s3.create_bucket(s3, bucket, region)
    except (ClientError, BotoCoreError) as e:
        raise BucketError(f"Failed to create bucket '{bucket}' in {region}: {e}")

    logger.info("Created bucket %s in %s", bucket, region)
    return True
