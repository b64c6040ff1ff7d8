# src/kubeguard_scan/reporter.py

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Optional

from kubeguard_scan.runner import ScanResult

SUMMARY_FILE_NAME = "run_summary.json"


@dataclass
class RunSummary:
    results: List[ScanResult] = field(default_factory=list)
    local_dir: Optional[Path] = None
    remote_prefix: str = ""
    install_log_uploaded: Optional[bool] = None

    @property
    def ok(self) -> bool:
        """
        Every scan succeeded, every report reached the bucket, and the
        installer log (if there was one) was uploaded. Log uploads don't count.
        """
        if self.install_log_uploaded is False:
            return False
        return all(r.succeeded and r.report_uploaded for r in self.results)

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


def _status(result: ScanResult) -> str:
    if not result.succeeded:
        if result.exit_code is None:
            return "FAILED (timed out / not launched)"
        return f"FAILED (exit code {result.exit_code})"
    if not result.report_uploaded:
        return "FAILED (report upload)"
    return "OK"


def _upload_mark(done: bool) -> str:
    return "uploaded" if done else "not uploaded"


def render_summary(summary: RunSummary) -> str:
    lines = []
    for r in summary.results:
        lines.append(f"[{_status(r)}] {r.framework}")
        lines.append(f"    report: {r.local_report_path}")
        lines.append(f"            {r.remote_report_path} ({_upload_mark(r.report_uploaded)})")
        lines.append(f"    log:    {r.local_log_path}")
        lines.append(f"            {r.remote_log_path} ({_upload_mark(r.log_uploaded)})")

    if summary.install_log_uploaded is not None:
        lines.append(f"Installer log: {_upload_mark(summary.install_log_uploaded)}")

    passed = sum(1 for r in summary.results if r.succeeded)
    lines.append(f"Frameworks: {len(summary.results)} • succeeded={passed} • failed={len(summary.results) - passed}")
    lines.append(f"Reports & logs in: {summary.local_dir}")
    lines.append(f"Remote prefix: {summary.remote_prefix}")
    lines.append("All scans succeeded." if summary.ok else "One or more steps failed.")
    return "\n".join(lines)


def summary_to_dict(summary: RunSummary) -> Dict[str, Any]:
    def _jsonify(obj: Any) -> Any:
        if isinstance(obj, Path):
            return str(obj)
        return obj

    return {
        "ok": summary.ok,
        "exit_code": summary.exit_code,
        "local_dir": _jsonify(summary.local_dir),
        "remote_prefix": summary.remote_prefix,
        "install_log_uploaded": summary.install_log_uploaded,
        "results": [{k: _jsonify(v) for k, v in vars(r).items()} for r in summary.results],
    }


def save_summary_json(summary: RunSummary, output_path: Optional[Path] = None) -> Path:
    output_path = Path(output_path) if output_path else Path(summary.local_dir) / SUMMARY_FILE_NAME
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(summary_to_dict(summary), f, indent=2)
    return output_path
