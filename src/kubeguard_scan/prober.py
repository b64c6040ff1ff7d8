# src/kubeguard_scan/prober.py
"""
Environment checks for the external tools the run depends on.

- aws, kubectl and git are mandatory; a missing one aborts the run.
- jq is optional and only produces a warning.
- kubescape is installed on demand through the upstream installer script.

The search path used for resolution is returned in a Toolchain instead of
being exported into the process environment.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional

import requests

from kubeguard_scan.config import (
    INSTALL_LOG_NAME,
    KUBESCAPE_INSTALL_URL,
    OPTIONAL_TOOLS,
    REQUIRED_TOOLS,
    SCANNER_TOOL,
    scanner_install_dir,
)
from kubeguard_scan.errors import MissingDependencyError

logger = logging.getLogger(__name__)

Progress = Callable[[str], None]


@dataclass(frozen=True)
class Toolchain:
    search_path: str
    tools: Dict[str, str] = field(default_factory=dict)
    install_log: Optional[Path] = None

    @property
    def kubescape(self) -> str:
        return self.tools[SCANNER_TOOL]

    def env(self) -> Dict[str, str]:
        """Child process environment with the resolved search path."""
        env = dict(os.environ)
        env["PATH"] = self.search_path
        return env


def _noop(_msg: str) -> None:
    pass


def find_tool(name: str, search_path: str) -> Optional[str]:
    return shutil.which(name, path=search_path)


def _is_executable(path: Optional[str]) -> bool:
    return bool(path) and os.path.isfile(path) and os.access(path, os.X_OK)


def install_kubescape(log_path: Path, url: str = KUBESCAPE_INSTALL_URL, timeout: float = 600) -> int:
    """
    Download the installer script and pipe it to bash, capturing all output
    into log_path. Returns the installer's exit code (or 1 if the download failed).
    """
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with open(log_path, "w", encoding="utf-8") as log:
        try:
            resp = requests.get(url, timeout=30)
            resp.raise_for_status()
        except requests.RequestException as e:
            log.write(f"Failed to download installer from {url}: {e}\n")
            logger.error("Installer download failed: %s", e)
            return 1

        log.flush()
        try:
            proc = subprocess.run(
                ["bash"],
                input=resp.content,
                stdout=log,
                stderr=subprocess.STDOUT,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            log.write(f"\nInstaller timed out after {timeout}s\n")
            return 1
        except OSError as e:
            log.write(f"\nCould not run installer: {e}\n")
            return 1
    return proc.returncode


def scanner_version(toolchain: Toolchain) -> Optional[str]:
    try:
        proc = subprocess.run(
            [toolchain.kubescape, "version"],
            capture_output=True,
            text=True,
            timeout=60,
            env=toolchain.env(),
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("Could not query kubescape version: %s", e)
        return None
    out = (proc.stdout or proc.stderr or "").strip()
    for line in out.splitlines():
        logger.info(">> %s", line)
    return out or None


def probe_environment(
    home: Optional[Path] = None,
    search_path: Optional[str] = None,
    progress: Progress = _noop,
) -> Toolchain:
    home = Path(home) if home else Path.home()
    search_path = search_path if search_path is not None else os.environ.get("PATH", "")
    tools: Dict[str, str] = {}

    for name in REQUIRED_TOOLS:
        found = find_tool(name, search_path)
        if not found:
            raise MissingDependencyError(f"Required tool '{name}' not found. Please install {name} before proceeding.")
        progress(f"Checking for {name}...")
        tools[name] = found

    for name in OPTIONAL_TOOLS:
        found = find_tool(name, search_path)
        if found:
            progress(f"Checking for {name}...")
            tools[name] = found
        else:
            logger.warning("Optional tool '%s' not found; continuing without it.", name)

    install_log = None
    scanner = find_tool(SCANNER_TOOL, search_path)
    if not scanner:
        install_log = home / INSTALL_LOG_NAME
        progress(f"Installing Kubescape... logs -> {install_log}")
        rc = install_kubescape(install_log)
        logger.debug("kubescape installer exited with %s", rc)

        install_dir = str(scanner_install_dir(home))
        if install_dir not in search_path.split(os.pathsep):
            search_path = os.pathsep.join(p for p in (search_path, install_dir) if p)
        scanner = find_tool(SCANNER_TOOL, search_path)
        if not _is_executable(scanner):
            raise MissingDependencyError(f"Kubescape installation failed. Check {install_log}")
        progress("Kubescape installed!")
    else:
        progress(f"Kubescape found: {scanner}")
    tools[SCANNER_TOOL] = scanner

    toolchain = Toolchain(search_path=search_path, tools=tools, install_log=install_log)
    scanner_version(toolchain)
    return toolchain
