# src/kubeguard_scan/config.py
"""
Central configuration, tunable constants and the per-run configuration object.

- Defaults mirror the layout used by the archived reports:
  <home>/kubescape_reports/<date>/<time>/ locally and
  s3://<bucket>/kubescape-reports/<date>/<time>/ remotely.
- RunConfiguration is built once per invocation and never mutated.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

DEFAULT_S3_BUCKET_NAME = "kubeguard-reports"
S3_BASE_FOLDER = "kubescape-reports"
FRAMEWORKS = ("nsa", "mitre")
VALID_FORMATS = ("html", "json", "pdf")
DEFAULT_FORMAT = "html"

# us-east-1 rejects an explicit LocationConstraint on bucket creation
AWS_DEFAULT_REGION = "us-east-1"

# Two letters, optional partition qualifier (us-gov-...), area, digit
REGION_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)?-[a-z]+-[0-9]$")

DEFAULT_SCAN_TIMEOUT = 3600
S3_CONNECT_TIMEOUT = 30
S3_READ_TIMEOUT = 300

REQUIRED_TOOLS = ("aws", "kubectl", "git")
OPTIONAL_TOOLS = ("jq",)
SCANNER_TOOL = "kubescape"
KUBESCAPE_INSTALL_URL = "https://raw.githubusercontent.com/kubescape/kubescape/master/install.sh"
INSTALL_LOG_NAME = "kubescape_install.log"
TIMESTAMP_FORMAT = "%Y%m%d/%H%M%S"


def default_reports_root() -> Path:
    return Path.home() / "kubescape_reports"


def scanner_install_dir(home: Optional[Path] = None) -> Path:
    """Directory the upstream installer drops the kubescape binary into."""
    return (home or Path.home()) / ".kubescape" / "bin"


def new_timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


def is_valid_region(region: str) -> bool:
    return bool(REGION_PATTERN.match(region or ""))


def normalize_format(fmt: str) -> Optional[str]:
    """Return the lower-cased format if it is one of VALID_FORMATS, else None."""
    candidate = (fmt or "").strip().lower()
    return candidate if candidate in VALID_FORMATS else None


def report_name(framework: str, output_format: str) -> str:
    return f"{framework.upper()}_Report.{output_format}"


def log_name(framework: str) -> str:
    return f"{framework}_cli.log"


@dataclass(frozen=True)
class RunConfiguration:
    """
    Parameters for a single scan-and-archive run.

    Fields:
    - region: AWS region the bucket lives in
    - bucket_name: destination bucket
    - output_format: one of VALID_FORMATS, lower-case
    - create_bucket_if_missing: creation authorized up front (flag mode)
    - timestamp: "YYYYMMDD/HHMMSS", used as a path segment locally and remotely
    - interactive: collected through prompts rather than flags
    - reports_root: local parent directory for all runs
    - scan_timeout: seconds per scanner invocation, None for no limit
    """
    region: str
    bucket_name: str = DEFAULT_S3_BUCKET_NAME
    output_format: str = DEFAULT_FORMAT
    create_bucket_if_missing: bool = False
    timestamp: str = field(default_factory=new_timestamp)
    interactive: bool = False
    reports_root: Path = field(default_factory=default_reports_root)
    scan_timeout: Optional[float] = DEFAULT_SCAN_TIMEOUT

    @property
    def local_dir(self) -> Path:
        return Path(self.reports_root) / self.timestamp

    @property
    def remote_prefix(self) -> str:
        return f"{S3_BASE_FOLDER}/{self.timestamp}"

    def remote_key(self, filename: str) -> str:
        return f"{self.remote_prefix}/{filename}"

    def remote_uri(self, filename: str) -> str:
        return f"s3://{self.bucket_name}/{self.remote_key(filename)}"
