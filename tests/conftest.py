"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable, TypedDict

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CLI_ENTRYPOINT = PROJECT_ROOT / "main.py"


class PreviewResult(TypedDict):
    """Outcome of one CLI invocation."""

    returncode: int
    stdout: str
    stderr: str
    payload: dict[str, Any] | None


def _run_cli(
    args: list[str], env: dict[str, str] | None = None, log_file: Path | None = None
) -> PreviewResult:
    command = [sys.executable, str(CLI_ENTRYPOINT), *args]
    if log_file:
        command.extend(["--log-destination", str(log_file)])

    process_env = {
        key: value for key, value in os.environ.items() if not key.startswith("HTTP_CORS_")
    }
    if env:
        process_env.update(env)

    completed = subprocess.run(
        command,
        cwd=PROJECT_ROOT,
        env=process_env,
        capture_output=True,
        text=True,
        timeout=30,
        check=False,
    )
    payload = None
    if completed.returncode == 0:
        try:
            payload = json.loads(completed.stdout)
        except json.JSONDecodeError:
            # Surface the raw output to help debug
            print(f"\nCLI stdout:\n{completed.stdout}")
            print(f"\nCLI stderr:\n{completed.stderr}")
            raise
    return {
        "returncode": completed.returncode,
        "stdout": completed.stdout,
        "stderr": completed.stderr,
        "payload": payload,
    }


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Expose the repository root path to tests."""

    return PROJECT_ROOT


@pytest.fixture(name="run_cli")
def _run_cli_fixture() -> Callable[..., PreviewResult]:
    """Run the policy preview CLI in a subprocess."""

    return _run_cli
