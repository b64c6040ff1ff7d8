import logging
import typer
from kubeguard_scan.collector import collect_from_flags, collect_interactive
from kubeguard_scan.config import DEFAULT_SCAN_TIMEOUT, VALID_FORMATS
from kubeguard_scan.errors import KubeguardError
from kubeguard_scan.prober import probe_environment
from kubeguard_scan.reporter import render_summary
from kubeguard_scan.scan_core import run_scan
from typing import Optional

app = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Run kubescape framework scans and archive reports and logs to S3.",
)


def header(title: str) -> None:
    typer.secho(f"\n--- {title} ---\n", fg=typer.colors.BLUE)


def ok(msg: str) -> None:
    typer.echo(typer.style("[OK] ", fg=typer.colors.GREEN) + msg)


def info(msg: str) -> None:
    typer.secho(msg, fg=typer.colors.CYAN)


def invalid(msg: str) -> None:
    typer.secho(msg, fg=typer.colors.RED)


@app.command()
def scan(
    region: Optional[str] = typer.Option(None, "--region", "-r", help="AWS region, e.g. ap-south-1 (mandatory with flags)"),
    bucket: Optional[str] = typer.Option(None, "--bucket", "-b", help="Destination S3 bucket"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help=f"Report format: {'|'.join(VALID_FORMATS)}"),
    create_bucket: bool = typer.Option(False, "--create-bucket", "-c", help="Create the bucket if it does not exist"),
    timeout: float = typer.Option(DEFAULT_SCAN_TIMEOUT, "--timeout", help="Per-scan timeout in seconds (0 disables)"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Without -r/-b/-f/-c the run is interactive."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    interactive = region is None and bucket is None and format is None and not create_bucket

    try:
        config = None
        if not interactive:
            config = collect_from_flags(region, bucket, format, create_bucket, scan_timeout=timeout)

        header("Checking Prerequisites")
        toolchain = probe_environment(progress=ok)

        if interactive:
            header("Gathering Information")
            config = collect_interactive(typer.prompt, invalid, scan_timeout=timeout)

        header("Running Scans")
        summary = run_scan(
            config,
            toolchain,
            confirm=typer.confirm if interactive else None,
            progress=info,
        )
    except KubeguardError as e:
        typer.secho(f"[ERROR] {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    header("All Done")
    typer.echo(render_summary(summary))
    raise typer.Exit(code=summary.exit_code)


if __name__ == "__main__":
    app()
