import pytest
import boto3
from unittest.mock import MagicMock
from botocore.exceptions import ClientError
from moto import mock_aws
from kubeguard_scan.providers import aws_s3


def _client_error(code, op="HeadBucket"):
    return ClientError({"Error": {"Code": code, "Message": code}}, op)


@pytest.fixture
def s3_eu():
    with mock_aws():
        yield boto3.client("s3", region_name="eu-west-1")


def test_bucket_exists_true_and_false(s3_eu):
    s3_eu.create_bucket(Bucket="present", CreateBucketConfiguration={"LocationConstraint": "eu-west-1"})

    assert aws_s3.bucket_exists(s3_eu, "present") is True
    assert aws_s3.bucket_exists(s3_eu, "absent") is False


def test_bucket_exists_reraises_access_denied():
    s3 = MagicMock()
    s3.head_bucket.side_effect = _client_error("403")
    with pytest.raises(ClientError):
        aws_s3.bucket_exists(s3, "someone-elses")


def test_create_bucket_sets_location_constraint(s3_eu):
    aws_s3.create_bucket(s3_eu, "kubeguard-eu", "eu-west-1")

    loc = s3_eu.get_bucket_location(Bucket="kubeguard-eu")
    assert loc["LocationConstraint"] == "eu-west-1"


def test_create_bucket_omits_constraint_in_default_region():
    s3 = MagicMock()
    aws_s3.create_bucket(s3, "kubeguard-us", "us-east-1")
    s3.create_bucket.assert_called_once_with(Bucket="kubeguard-us")

    with mock_aws():
        real = boto3.client("s3", region_name="us-east-1")
        # moto rejects an explicit us-east-1 constraint, same as S3
        aws_s3.create_bucket(real, "kubeguard-us", "us-east-1")
        assert aws_s3.bucket_exists(real, "kubeguard-us")


def test_upload_file_lands_under_key(s3_eu, tmp_path):
    s3_eu.create_bucket(Bucket="reports", CreateBucketConfiguration={"LocationConstraint": "eu-west-1"})
    local = tmp_path / "NSA_Report.json"
    local.write_text("{}")

    uri = aws_s3.upload_file(s3_eu, str(local), "reports", "kubescape-reports/20240131/120000/NSA_Report.json",
                             content_type="application/json")

    assert uri == "s3://reports/kubescape-reports/20240131/120000/NSA_Report.json"
    head = s3_eu.head_object(Bucket="reports", Key="kubescape-reports/20240131/120000/NSA_Report.json")
    assert head["ContentType"] == "application/json"


def test_caller_identity():
    with mock_aws():
        identity = aws_s3.caller_identity("eu-west-1")
    assert identity["Account"]
    assert identity["Arn"].startswith("arn:aws:")
