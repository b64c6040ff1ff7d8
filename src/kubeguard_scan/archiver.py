import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from kubeguard_scan.config import INSTALL_LOG_NAME, RunConfiguration
from kubeguard_scan.errors import ArchiveError
from kubeguard_scan.providers import aws_s3
from kubeguard_scan.runner import ScanResult

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]

UPLOAD_ERRORS = (ClientError, BotoCoreError, S3UploadFailedError, OSError)

CONTENT_TYPES = {
    ".html": "text/html",
    ".json": "application/json",
    ".pdf": "application/pdf",
    ".log": "text/plain",
}


def _noop(_msg: str) -> None:
    pass


def prepare_local_dir(config: RunConfiguration) -> Path:
    """Create <reports_root>/<date>/<time>; failure here aborts the run."""
    path = config.local_dir
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveError(f"Could not create report directory {path}: {e}")
    logger.info("Created %s", path)
    return path


def upload(s3, config: RunConfiguration, local_path: Path) -> bool:
    """Upload one file under the run's remote prefix. Returns False on any failure."""
    local_path = Path(local_path)
    if not local_path.is_file():
        logger.error("Nothing to upload, %s does not exist", local_path)
        return False
    key = config.remote_key(local_path.name)
    try:
        aws_s3.upload_file(s3, str(local_path), config.bucket_name, key,
                           content_type=CONTENT_TYPES.get(local_path.suffix.lower()))
    except UPLOAD_ERRORS as e:
        logger.error("Upload of %s to s3://%s/%s failed: %s", local_path.name, config.bucket_name, key, e)
        return False
    return True


def archive_install_log(s3, config: RunConfiguration, install_log: Optional[Path],
                        progress: Progress = _noop) -> Optional[bool]:
    """
    Copy the installer log into the run directory and upload it.
    Returns None when there is no installer log for this run.
    """
    if not install_log or not Path(install_log).is_file():
        return None
    local_copy = config.local_dir / INSTALL_LOG_NAME
    try:
        shutil.copyfile(install_log, local_copy)
    except OSError as e:
        logger.error("Could not copy %s into %s: %s", install_log, config.local_dir, e)
        return False
    ok = upload(s3, config, local_copy)
    if ok:
        progress(f"Uploaded {INSTALL_LOG_NAME}")
    return ok


def archive_result(s3, config: RunConfiguration, result: ScanResult, progress: Progress = _noop) -> ScanResult:
    # A failed scan skips its report but still ships the log
    if result.succeeded:
        result.report_uploaded = upload(s3, config, result.local_report_path)
        if result.report_uploaded:
            progress(f"{result.framework} report uploaded -> {result.remote_report_path}")

    if result.local_log_path.is_file():
        result.log_uploaded = upload(s3, config, result.local_log_path)
        if result.log_uploaded:
            progress(f"{result.framework} log uploaded -> {result.remote_log_path}")
        else:
            logger.warning("Log upload failed for %s; continuing", result.framework)
    return result
