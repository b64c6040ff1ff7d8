import subprocess
from pathlib import Path

import pytest

from kubeguard_scan.config import RunConfiguration
from kubeguard_scan.prober import Toolchain


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    # Never let a test reach a real account
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def toolchain():
    return Toolchain(search_path="/usr/bin", tools={"kubescape": "/usr/local/bin/kubescape"})


@pytest.fixture
def make_config(tmp_path):
    def _make(**kw):
        kw.setdefault("region", "eu-west-1")
        kw.setdefault("bucket_name", "kubeguard-test-reports")
        kw.setdefault("output_format", "json")
        kw.setdefault("timestamp", "20240131/120000")
        kw.setdefault("reports_root", tmp_path / "kubescape_reports")
        return RunConfiguration(**kw)
    return _make


@pytest.fixture
def fake_kubescape():
    """
    Stand-in for subprocess.run: writes a log line, writes the report when the
    framework's exit code is 0, and records every command it was given.
    """
    def _factory(exit_codes=None):
        exit_codes = exit_codes or {}
        calls = []

        def _run(cmd, stdout=None, stderr=None, timeout=None, env=None, **kw):
            calls.append(cmd)
            framework = cmd[3]
            output = Path(cmd[cmd.index("--output") + 1])
            stdout.write(f"scanning framework {framework}\n")
            rc = exit_codes.get(framework, 0)
            if rc == 0:
                output.write_text("{\"summary\": \"ok\"}", encoding="utf-8")
            return subprocess.CompletedProcess(cmd, rc)

        _run.calls = calls
        return _run
    return _factory
