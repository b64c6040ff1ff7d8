import subprocess
from unittest.mock import patch

from kubeguard_scan.runner import build_command, run_framework, run_scans


def test_command_line(tmp_path):
    cmd = build_command("/opt/kubescape", "nsa", "json", tmp_path / "NSA_Report.json")
    assert cmd == [
        "/opt/kubescape", "scan", "framework", "nsa",
        "--format", "json", "--output", str(tmp_path / "NSA_Report.json"), "--verbose",
    ]


def test_successful_scan(make_config, toolchain, fake_kubescape):
    config = make_config()
    config.local_dir.mkdir(parents=True)
    fake = fake_kubescape()

    with patch("kubeguard_scan.runner.subprocess.run", side_effect=fake):
        result = run_framework(config, toolchain, "mitre")

    assert result.succeeded and result.exit_code == 0
    assert result.local_report_path == config.local_dir / "MITRE_Report.json"
    assert result.local_log_path == config.local_dir / "mitre_cli.log"
    assert result.remote_report_path.endswith("/kubescape-reports/20240131/120000/MITRE_Report.json")
    assert result.local_report_path.exists()
    assert "scanning framework mitre" in result.local_log_path.read_text()
    assert fake.calls[0][0] == toolchain.kubescape


def test_failure_does_not_stop_remaining(make_config, toolchain, fake_kubescape):
    config = make_config()
    config.local_dir.mkdir(parents=True)
    fake = fake_kubescape({"nsa": 2})

    with patch("kubeguard_scan.runner.subprocess.run", side_effect=fake):
        results = list(run_scans(config, toolchain))

    assert [r.framework for r in results] == ["nsa", "mitre"]
    assert [r.succeeded for r in results] == [False, True]
    assert results[0].exit_code == 2
    assert len(fake.calls) == 2


def test_timeout_is_recorded(make_config, toolchain):
    config = make_config(scan_timeout=5)
    config.local_dir.mkdir(parents=True)

    with patch("kubeguard_scan.runner.subprocess.run",
               side_effect=subprocess.TimeoutExpired(["kubescape"], 5)) as run:
        result = run_framework(config, toolchain, "nsa")

    assert run.call_args.kwargs["timeout"] == 5
    assert not result.succeeded
    assert result.exit_code is None
    assert "timed out after 5s" in result.local_log_path.read_text()


def test_launch_error_is_a_failed_result(make_config, toolchain):
    config = make_config()
    config.local_dir.mkdir(parents=True)

    with patch("kubeguard_scan.runner.subprocess.run", side_effect=FileNotFoundError("kubescape")):
        results = list(run_scans(config, toolchain))

    assert all(not r.succeeded for r in results)
    assert len(results) == 2


def test_unopenable_log_does_not_stop_remaining(make_config, toolchain, fake_kubescape):
    config = make_config()
    config.local_dir.mkdir(parents=True)
    # a directory where the nsa log file should go
    (config.local_dir / "nsa_cli.log").mkdir()
    fake = fake_kubescape()

    with patch("kubeguard_scan.runner.subprocess.run", side_effect=fake):
        results = list(run_scans(config, toolchain))

    nsa, mitre = results
    assert not nsa.succeeded and nsa.exit_code is None
    assert mitre.succeeded
    assert [cmd[3] for cmd in fake.calls] == ["mitre"]


def test_results_yielded_one_scan_at_a_time(make_config, toolchain, fake_kubescape):
    config = make_config()
    config.local_dir.mkdir(parents=True)
    fake = fake_kubescape()

    with patch("kubeguard_scan.runner.subprocess.run", side_effect=fake):
        scans = run_scans(config, toolchain)
        first = next(scans)
        assert first.framework == "nsa"
        assert len(fake.calls) == 1
        assert [r.framework for r in scans] == ["mitre"]
