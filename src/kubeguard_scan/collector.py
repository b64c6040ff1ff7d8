from typing import Callable, Optional

from kubeguard_scan.config import (
    DEFAULT_FORMAT,
    DEFAULT_S3_BUCKET_NAME,
    DEFAULT_SCAN_TIMEOUT,
    VALID_FORMATS,
    RunConfiguration,
    is_valid_region,
    normalize_format,
)
from kubeguard_scan.errors import InvalidInputError

Prompt = Callable[..., str]
Echo = Callable[[str], None]


def _timeout_or_none(timeout: Optional[float]) -> Optional[float]:
    # 0 (or negative) disables the limit
    if timeout is None or timeout <= 0:
        return None
    return timeout


def collect_interactive(
    prompt: Prompt,
    echo: Echo,
    scan_timeout: Optional[float] = DEFAULT_SCAN_TIMEOUT,
) -> RunConfiguration:
    """
    Ask for region, bucket and format until each answer is acceptable.

    Region and format are re-prompted indefinitely; an empty bucket answer
    falls back to DEFAULT_S3_BUCKET_NAME.
    """
    while True:
        region = prompt("Region (e.g., ap-south-1)").strip()
        if is_valid_region(region):
            break
        echo(f"Invalid region: {region!r}")

    bucket = prompt(f"S3 bucket [default: {DEFAULT_S3_BUCKET_NAME}]", default="", show_default=False).strip()

    while True:
        answer = prompt(f"Format ({'|'.join(VALID_FORMATS)})")
        output_format = normalize_format(answer)
        if output_format:
            break
        echo(f"Invalid format: {answer!r}")

    return RunConfiguration(
        region=region,
        bucket_name=bucket or DEFAULT_S3_BUCKET_NAME,
        output_format=output_format,
        create_bucket_if_missing=False,
        interactive=True,
        scan_timeout=_timeout_or_none(scan_timeout),
    )


def collect_from_flags(
    region: Optional[str],
    bucket: Optional[str] = None,
    output_format: Optional[str] = None,
    create_bucket: bool = False,
    scan_timeout: Optional[float] = DEFAULT_SCAN_TIMEOUT,
) -> RunConfiguration:
    if not region:
        raise InvalidInputError("Region is required in non-interactive mode (-r REGION).")
    region = region.strip()
    if not is_valid_region(region):
        raise InvalidInputError(f"Invalid region format: '{region}' (expected e.g. us-east-1).")

    fmt = normalize_format(output_format) if output_format is not None else DEFAULT_FORMAT
    if not fmt:
        raise InvalidInputError(
            f"Invalid output format: '{output_format}'. Valid formats: {', '.join(VALID_FORMATS)}."
        )

    return RunConfiguration(
        region=region,
        bucket_name=(bucket or "").strip() or DEFAULT_S3_BUCKET_NAME,
        output_format=fmt,
        create_bucket_if_missing=create_bucket,
        interactive=False,
        scan_timeout=_timeout_or_none(scan_timeout),
    )
