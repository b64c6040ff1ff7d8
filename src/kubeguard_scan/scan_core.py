import logging
from typing import Callable, Dict, Iterable, Optional

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from kubeguard_scan.archiver import archive_install_log, archive_result, prepare_local_dir
from kubeguard_scan.config import FRAMEWORKS, RunConfiguration
from kubeguard_scan.errors import CredentialError
from kubeguard_scan.prober import Toolchain
from kubeguard_scan.provisioner import Confirm, ensure_bucket
from kubeguard_scan.providers import aws_s3
from kubeguard_scan.reporter import RunSummary, save_summary_json
from kubeguard_scan.runner import run_scans

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]


def _noop(_msg: str) -> None:
    pass


def check_identity(config: RunConfiguration) -> Dict[str, str]:
    try:
        identity = aws_s3.caller_identity(config.region)
    except NoCredentialsError:
        raise CredentialError("No AWS credentials found. Configure credentials and retry.")
    except ClientError as e:
        code = e.response.get("Error", {}).get("Code", "")
        raise CredentialError(f"AWS identity check failed ({code}): {e}")
    except BotoCoreError as e:
        raise CredentialError(f"AWS identity check failed: {e}")
    logger.info("AWS identity: account=%s arn=%s", identity.get("Account"), identity.get("Arn"))
    return identity


def run_scan(
    config: RunConfiguration,
    toolchain: Toolchain,
    s3=None,
    confirm: Optional[Confirm] = None,
    progress: Progress = _noop,
    frameworks: Iterable[str] = FRAMEWORKS,
) -> RunSummary:
    """
    Identity -> bucket -> local dir -> installer log -> (scan, archive) per framework.

    Fatal conditions raise KubeguardError subclasses before any scan starts;
    per-framework and per-upload failures are collected in the returned summary.
    """
    identity = check_identity(config)
    progress(f"AWS identity: {identity.get('Arn')}")

    if s3 is None:
        s3 = aws_s3.make_client("s3", config.region)

    created = ensure_bucket(s3, config, confirm=confirm)
    progress(f"S3 bucket {config.bucket_name} {'created' if created else 'ready'}")

    local_dir = prepare_local_dir(config)
    progress(f"Created {local_dir}")

    summary = RunSummary(
        local_dir=local_dir,
        remote_prefix=f"s3://{config.bucket_name}/{config.remote_prefix}",
    )
    summary.install_log_uploaded = archive_install_log(s3, config, toolchain.install_log, progress)

    for result in run_scans(config, toolchain, frameworks, progress):
        summary.results.append(archive_result(s3, config, result, progress))

    try:
        save_summary_json(summary)
    except OSError as e:
        logger.warning("Could not write run summary: %s", e)
    return summary
