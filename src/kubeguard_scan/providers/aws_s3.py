from typing import Dict, Optional
import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from kubeguard_scan.config import AWS_DEFAULT_REGION, S3_CONNECT_TIMEOUT, S3_READ_TIMEOUT


def make_client(service: str, region: str, connect_timeout: float = S3_CONNECT_TIMEOUT,
                read_timeout: float = S3_READ_TIMEOUT):
    config = Config(region_name=region, connect_timeout=connect_timeout, read_timeout=read_timeout)
    return boto3.client(service, region_name=region, config=config)


def caller_identity(region: str) -> Dict[str, str]:
    sts = make_client("sts", region)
    resp = sts.get_caller_identity()
    return {k: resp.get(k, "") for k in ("Account", "UserId", "Arn")}


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


def bucket_exists(s3, bucket: str) -> bool:
    """
    True if head_bucket succeeds. A 404/NoSuchBucket means absent; anything
    else (403 included) is re-raised for the caller to classify.
    """
    try:
        s3.head_bucket(Bucket=bucket)
        return True
    except ClientError as e:
        if _error_code(e) in ("404", "NoSuchBucket", "NotFound"):
            return False
        raise


def create_bucket(s3, bucket: str, region: str) -> None:
    # us-east-1 is the only region that refuses an explicit LocationConstraint
    if region == AWS_DEFAULT_REGION:
        s3.create_bucket(Bucket=bucket)
    else:
        s3.create_bucket(
            Bucket=bucket,
            CreateBucketConfiguration={"LocationConstraint": region},
        )


def upload_file(s3, local_path: str, bucket: str, key: str, content_type: Optional[str] = None) -> str:
    extra = {"ContentType": content_type} if content_type else None
    s3.upload_file(str(local_path), bucket, key, ExtraArgs=extra)
    return f"s3://{bucket}/{key}"
