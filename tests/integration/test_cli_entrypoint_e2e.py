from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def _env_with_pythonpath() -> dict[str, str]:
    env = dict(os.environ)
    env.pop("ROLEGRANT_SUBSCRIPTION_ID", None)
    existing = env.get("PYTHONPATH", "")
    src_path = str(Path("src").resolve())
    env["PYTHONPATH"] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    return env


def test_cli_module_reports_invalid_args_via_exit_code(tmp_path: Path) -> None:
    completed = subprocess.run(
        [
            sys.executable,
            "-m",
            "rolegrant",
            "--principal-id",
            "p",
            "--log-level",
            "verbose",
            "--log-file",
            str(tmp_path / "rolegrant.log"),
        ],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 2
    assert "--log-level must be one of" in completed.stderr


def test_cli_module_requires_subscription(tmp_path: Path) -> None:
    completed = subprocess.run(
        [
            sys.executable,
            "-m",
            "rolegrant",
            "--principal-id",
            "p",
            "--role-id",
            "r",
            "--scope",
            "/s",
            "--config",
            str(tmp_path / "config.toml"),
            "--log-file",
            str(tmp_path / "rolegrant.log"),
        ],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 3
    assert "Azure subscription id is not configured" in completed.stderr
