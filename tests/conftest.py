"""Pytest configuration and fixtures."""

import re
from pathlib import Path

import pytest

from core.models import RemoteVersionInfo, VersionSource
from core.package_manager import CommandResult

PACKAGE_ID = "CounterStrikeSharp.API"

CSPROJ_TEMPLATE = """<Project Sdk="Microsoft.NET.Sdk">

  <PropertyGroup>
    <TargetFramework>net8.0</TargetFramework>
    <ImplicitUsings>enable</ImplicitUsings>
  </PropertyGroup>

  <ItemGroup>
    <PackageReference Include="CounterStrikeSharp.API" Version="{version}" />
  </ItemGroup>

</Project>
"""


class FakePackageManager:
    """Stands in for the dotnet CLI; edits the manifest like ``dotnet add`` would."""

    def __init__(self, remove_ok=True, add_ok=True, restore_ok=True, build_ok=True):
        self.remove_ok = remove_ok
        self.add_ok = add_ok
        self.restore_ok = restore_ok
        self.build_ok = build_ok
        self.calls: list[str] = []

    def _result(self, name: str, ok: bool) -> CommandResult:
        self.calls.append(name)
        output = "" if ok else f"error: {name} failed"
        return CommandResult(["dotnet", name], 0 if ok else 1, stderr=output)

    def remove_package(self, manifest: Path, package_id: str) -> CommandResult:
        if self.remove_ok:
            content = manifest.read_text()
            pattern = rf'\s*<PackageReference Include="{re.escape(package_id)}"[^>]*/>'
            manifest.write_text(re.sub(pattern, "", content))
        return self._result("remove", self.remove_ok)

    def add_package(self, manifest: Path, package_id: str, version: str) -> CommandResult:
        if self.add_ok:
            content = manifest.read_text()
            element = f'    <PackageReference Include="{package_id}" Version="{version}" />\n  '
            manifest.write_text(content.replace("</ItemGroup>", element + "</ItemGroup>", 1))
        return self._result("add", self.add_ok)

    def restore(self, manifest: Path) -> CommandResult:
        return self._result("restore", self.restore_ok)

    def build(self, manifest: Path) -> CommandResult:
        return self._result("build", self.build_ok)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep DEPBUMP_* variables of the developer's shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("DEPBUMP_"):
            monkeypatch.delenv(key)


@pytest.fixture
def sample_csproj():
    """Sample .csproj content pinning 1.0.140."""
    return CSPROJ_TEMPLATE.format(version="1.0.140")


@pytest.fixture
def manifest_file(tmp_path, sample_csproj):
    """Create a temporary manifest file for testing."""
    manifest = tmp_path / "HLTV_VoiceFix.csproj"
    manifest.write_text(sample_csproj)
    return manifest


@pytest.fixture
def latest_info():
    """Latest release as reported by the primary source."""
    return RemoteVersionInfo(
        version="1.0.150",
        source=VersionSource.PRIMARY,
        source_name="GitHub releases",
        notes="## Changes\n- Fixed voice flags\n- Updated gamedata",
        published_at="2024-01-15T12:00:00Z",
        info_url="https://github.com/roflmuffin/CounterStrikeSharp/releases/tag/v1.0.150",
    )


@pytest.fixture
def fake_package_manager():
    """Factory for FakePackageManager instances."""
    return FakePackageManager
