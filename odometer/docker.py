"""Starting and stopping client containers with docker compose."""

from __future__ import annotations

import subprocess
import sys
import time
from pathlib import Path

import requests


class DockerError(Exception):
    """Base error for docker compose operations."""


class DockerCommandError(DockerError):
    """A docker command could not be run or exited unsuccessfully."""


class HealthCheckTimeout(DockerError):
    """The client did not answer before the timeout."""

    def __init__(self) -> None:
        super().__init__("Health check timeout")


class DockerCompose:
    """A docker compose project for one client."""

    def __init__(
        self,
        compose_file: str,
        workdir: str | Path = "clients",
        health_url: str = "http://localhost:8551",
    ) -> None:
        self.compose_file = compose_file
        self.workdir = Path(workdir)
        self.health_url = health_url

    @property
    def project_name(self) -> str:
        stem = Path(self.compose_file).stem or "client"
        return f"odometer-{stem}"

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        command = ["docker", "compose", "-f", self.compose_file, *args]
        try:
            result = subprocess.run(command, cwd=self.workdir, capture_output=True)
        except OSError as exc:
            message = f"Failed to execute docker command: {exc}"
            print(f"❌ {message}", file=sys.stderr)
            raise DockerCommandError(message) from exc

        stdout = result.stdout.decode("utf-8", errors="replace").strip()
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        if result.stdout:
            print(f"🔵 Docker: {stdout}")
        if result.stderr:
            if "error" in stderr:
                print(f"❌ Docker Error: {stderr}", file=sys.stderr)
            else:
                print(f"ℹ️  Docker: {stderr}")

        if result.returncode != 0:
            message = f"Docker command failed with status {result.returncode}"
            print(f"❌ {message}", file=sys.stderr)
            raise DockerCommandError(message)
        return result

    def up(self) -> None:
        """Start the project's containers in the background."""
        self._run("-p", self.project_name, "up", "-d")

    def down(self) -> None:
        """Stop the project's containers and remove their volumes."""
        self._run("-p", self.project_name, "down", "--volumes")

    def wait_for_healthy(self, timeout_secs: float = 30) -> None:
        """Poll the health URL until it answers, or raise HealthCheckTimeout."""
        deadline = time.monotonic() + timeout_secs
        while time.monotonic() < deadline:
            try:
                requests.get(self.health_url, timeout=max(deadline - time.monotonic(), 0.1))
                return
            except requests.RequestException:
                time.sleep(0.5)
        raise HealthCheckTimeout()