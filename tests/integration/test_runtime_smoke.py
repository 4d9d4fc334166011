import subprocess
import sys

import pytest


@pytest.mark.integration
def test_cli_starts_in_stub_mode_via_dry_run() -> None:
    proc = subprocess.run(
        [sys.executable, "-m", "codenexus.main", "--dry-run-startup"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 0, proc.stderr
    assert "dry-run startup complete" in proc.stderr


@pytest.mark.integration
def test_cli_without_arguments_exits_with_usage_error() -> None:
    proc = subprocess.run(
        [sys.executable, "-m", "codenexus.main"],
        capture_output=True,
        text=True,
        check=False,
    )
    assert proc.returncode == 2
    assert "either --file or --serve is required" in proc.stderr
