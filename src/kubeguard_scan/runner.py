# src/kubeguard_scan/runner.py
"""
Runs `kubescape scan framework` once per framework, strictly one after another.

Each invocation is a single blocking subprocess call whose stdout and stderr
both land in the framework's log file. A failed, timed-out or unlaunchable
scan is recorded on its ScanResult and never stops the remaining frameworks.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from kubeguard_scan.config import FRAMEWORKS, RunConfiguration, log_name, report_name
from kubeguard_scan.prober import Toolchain

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]


@dataclass
class ScanResult:
    framework: str
    local_report_path: Path
    local_log_path: Path
    remote_report_path: str
    remote_log_path: str
    exit_code: Optional[int] = None
    succeeded: bool = False
    report_uploaded: bool = False
    log_uploaded: bool = False


def _noop(_msg: str) -> None:
    pass


def build_command(kubescape: str, framework: str, output_format: str, output_path: Path) -> List[str]:
    return [
        kubescape, "scan", "framework", framework,
        "--format", output_format,
        "--output", str(output_path),
        "--verbose",
    ]


def new_result(config: RunConfiguration, framework: str) -> ScanResult:
    report = report_name(framework, config.output_format)
    log = log_name(framework)
    return ScanResult(
        framework=framework,
        local_report_path=config.local_dir / report,
        local_log_path=config.local_dir / log,
        remote_report_path=config.remote_uri(report),
        remote_log_path=config.remote_uri(log),
    )


def run_framework(config: RunConfiguration, toolchain: Toolchain, framework: str,
                  progress: Progress = _noop) -> ScanResult:
    result = new_result(config, framework)
    cmd = build_command(toolchain.kubescape, framework, config.output_format, result.local_report_path)
    logger.debug("Running: %s", " ".join(cmd))
    progress(f"{framework} in progress...")

    try:
        log = open(result.local_log_path, "w", encoding="utf-8")
    except OSError as e:
        logger.error("%s scan not started, cannot open %s: %s", framework, result.local_log_path, e)
        return result

    with log:
        try:
            proc = subprocess.run(
                cmd,
                stdout=log,
                stderr=subprocess.STDOUT,
                timeout=config.scan_timeout,
                env=toolchain.env(),
            )
            result.exit_code = proc.returncode
        except subprocess.TimeoutExpired:
            log.write(f"\n[kubeguard-scan] scan timed out after {config.scan_timeout}s\n")
            logger.error("%s scan timed out after %ss", framework, config.scan_timeout)
        except OSError as e:
            log.write(f"\n[kubeguard-scan] could not launch kubescape: {e}\n")
            logger.error("%s scan could not be launched: %s", framework, e)

    result.succeeded = result.exit_code == 0
    if result.succeeded:
        progress(f"{framework} report -> {result.local_report_path}")
    else:
        logger.warning("%s scan failed (exit code %s); see %s", framework, result.exit_code, result.local_log_path)
    return result


def run_scans(config: RunConfiguration, toolchain: Toolchain,
              frameworks: Iterable[str] = FRAMEWORKS, progress: Progress = _noop) -> Iterator[ScanResult]:
    """Yield each framework's result as soon as its scan finishes, so callers can archive in between."""
    for fw in frameworks:
        progress(f"-- {fw} scan")
        yield run_framework(config, toolchain, fw, progress)
