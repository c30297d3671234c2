"""Thin wrapper around the dotnet CLI."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one package-manager command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def tail(self, lines: int = 20) -> str:
        """Last lines of combined output, for error reports."""
        combined = "\n".join(part for part in (self.stdout, self.stderr) if part)
        return "\n".join(combined.splitlines()[-lines:])


class PackageManager:
    """Runs package-manager commands against one manifest."""

    def __init__(
        self,
        executable: str = "dotnet",
        timeout: float = 600.0,
        build_configuration: str = "Release",
    ):
        self.executable = executable
        self.timeout = timeout
        self.build_configuration = build_configuration

    def run(self, args: list[str], cwd: Path | None = None) -> CommandResult:
        command = [self.executable, *args]
        logger.info("Running %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            logger.warning("%s not found: %s", self.executable, e)
            return CommandResult(command, 127, stderr=str(e))
        except subprocess.TimeoutExpired:
            logger.warning("%s timed out after %ss", " ".join(command), self.timeout)
            return CommandResult(command, 124, stderr=f"timed out after {self.timeout}s")
        except OSError as e:
            logger.warning("Cannot run %s: %s", self.executable, e)
            return CommandResult(command, 126, stderr=str(e))

        result = CommandResult(command, completed.returncode, completed.stdout, completed.stderr)
        if not result.ok:
            logger.debug("Command failed with %d:\n%s", result.returncode, result.tail())
        return result

    def remove_package(self, manifest: Path, package_id: str) -> CommandResult:
        return self.run(["remove", str(manifest), "package", package_id], cwd=manifest.parent)

    def add_package(self, manifest: Path, package_id: str, version: str) -> CommandResult:
        return self.run(
            ["add", str(manifest), "package", package_id, "--version", version],
            cwd=manifest.parent,
        )

    def restore(self, manifest: Path) -> CommandResult:
        return self.run(["restore", str(manifest)], cwd=manifest.parent)

    def build(self, manifest: Path) -> CommandResult:
        return self.run(
            ["build", str(manifest), "-c", self.build_configuration],
            cwd=manifest.parent,
        )
