"""Tests for CLI functionality."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from apps.cli.main import app
from core.errors import ResolutionFailure, SourceError
from core.extract import extract_version
from core.models import ManifestHandle

PACKAGE_ID = "CounterStrikeSharp.API"


def mock_resolver(info=None, error=None):
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=info, side_effect=error)
    return resolver


class TestCLI:
    """Test CLI command interface."""

    def setup_method(self):
        """Setup test fixtures."""
        self.runner = CliRunner()

    def invoke(self, args, info=None, pm=None, error=None, input=None):
        with patch("apps.cli.main.build_resolver", return_value=mock_resolver(info, error)), \
                patch("apps.cli.main.PackageManager", return_value=pm) as mock_pm_class:
            result = self.runner.invoke(app, args, input=input)
        self.pm_class = mock_pm_class
        return result

    def test_cli_help_command(self):
        """Should display help and do nothing else."""
        with patch("apps.cli.main.build_resolver") as mock_build:
            result = self.runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "--check-only" in result.output
        assert "--update-to-latest" in result.output
        mock_build.assert_not_called()

    def test_full_update_to_latest(self, manifest_file, latest_info, fake_package_manager):
        """1.0.140 -> 1.0.150 with --update-to-latest updates and cleans up."""
        pm = fake_package_manager()
        result = self.invoke(["--manifest", str(manifest_file), "--update-to-latest"], latest_info, pm)

        assert result.exit_code == 0, result.output
        handle = ManifestHandle(manifest_file, PACKAGE_ID)
        assert extract_version(handle) == "1.0.150"
        assert not handle.backup_path.exists()
        assert "1.0.150" in result.output

    def test_build_failure_rolls_back(self, manifest_file, latest_info, fake_package_manager):
        """A failing build leaves the manifest byte-identical and exits 1."""
        original = manifest_file.read_bytes()
        pm = fake_package_manager(build_ok=False)

        result = self.invoke(["--manifest", str(manifest_file), "--update-to-latest"], latest_info, pm)

        assert result.exit_code == 1
        assert manifest_file.read_bytes() == original
        assert not ManifestHandle(manifest_file, PACKAGE_ID).backup_path.exists()
        assert "Build failed" in result.output

    def test_check_only(self, manifest_file, latest_info, fake_package_manager):
        """Check-only reports the update but never touches the manifest."""
        original = manifest_file.read_bytes()
        pm = fake_package_manager()

        result = self.invoke(["--manifest", str(manifest_file), "--check-only"], latest_info, pm)

        assert result.exit_code == 0
        assert manifest_file.read_bytes() == original
        assert not ManifestHandle(manifest_file, PACKAGE_ID).backup_path.exists()
        assert "Update available" in result.output
        assert pm.calls == []
        self.pm_class.assert_not_called()

    def test_check_only_json(self, manifest_file, latest_info, fake_package_manager):
        result = self.invoke(
            ["--manifest", str(manifest_file), "--check-only", "--format", "json"],
            latest_info, fake_package_manager(),
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["current_version"] == "1.0.140"
        assert data["latest_version"] == "1.0.150"
        assert data["comparison"] == "newer"
        assert data["proceed"] is False

    def test_update_json(self, manifest_file, latest_info, fake_package_manager):
        result = self.invoke(
            ["--manifest", str(manifest_file), "--update-to-latest", "--format", "json"],
            latest_info, fake_package_manager(),
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["updated"]["new_version"] == "1.0.150"
        assert data["updated"]["method"] == "package-manager"

    def test_second_run_is_noop(self, manifest_file, latest_info, fake_package_manager):
        """Running twice: the second run reports up to date and changes nothing."""
        pm = fake_package_manager()
        args = ["--manifest", str(manifest_file), "--update-to-latest"]

        first = self.invoke(args, latest_info, pm)
        assert first.exit_code == 0
        calls_after_first = list(pm.calls)
        content_after_first = manifest_file.read_bytes()

        second = self.invoke(args, latest_info, pm)
        assert second.exit_code == 0
        assert "up to date" in second.output.lower()
        assert pm.calls == calls_after_first
        assert manifest_file.read_bytes() == content_after_first

    def test_force_reapplies_same_version(self, manifest_file, latest_info, fake_package_manager):
        manifest_file.write_text(manifest_file.read_text().replace("1.0.140", "1.0.150"))
        pm = fake_package_manager()

        result = self.invoke(["--manifest", str(manifest_file), "--force"], latest_info, pm)

        assert result.exit_code == 0
        assert "build" in pm.calls

    def test_target_version(self, manifest_file, latest_info, fake_package_manager):
        result = self.invoke(
            ["--manifest", str(manifest_file), "--target-version", "1.0.145"],
            latest_info, fake_package_manager(),
        )

        assert result.exit_code == 0
        assert extract_version(ManifestHandle(manifest_file, PACKAGE_ID)) == "1.0.145"

    def test_resolution_failure(self, manifest_file, fake_package_manager):
        """Neither source answering is a terminal failure with exit 1."""
        error = ResolutionFailure([
            SourceError("GitHub releases", "HTTP 500"),
            SourceError("NuGet index", "timeout after 30.0s"),
        ])
        original = manifest_file.read_bytes()

        result = self.invoke(["--manifest", str(manifest_file), "--check-only"],
                             error=error, pm=fake_package_manager())

        assert result.exit_code == 1
        assert "Could not resolve" in result.output
        assert manifest_file.read_bytes() == original

    def test_interactive_latest(self, manifest_file, latest_info, fake_package_manager):
        """Without flags the operator picks the action."""
        result = self.invoke(["--manifest", str(manifest_file)], latest_info,
                             fake_package_manager(), input="1\n")

        assert result.exit_code == 0
        assert extract_version(ManifestHandle(manifest_file, PACKAGE_ID)) == "1.0.150"

    def test_interactive_custom_version(self, manifest_file, latest_info, fake_package_manager):
        result = self.invoke(["--manifest", str(manifest_file)], latest_info,
                             fake_package_manager(), input="2\n1.0.148\n")

        assert result.exit_code == 0
        assert extract_version(ManifestHandle(manifest_file, PACKAGE_ID)) == "1.0.148"

    def test_interactive_abort(self, manifest_file, latest_info, fake_package_manager):
        original = manifest_file.read_bytes()
        pm = fake_package_manager()

        result = self.invoke(["--manifest", str(manifest_file)], latest_info, pm, input="3\n")

        assert result.exit_code == 1
        assert "aborted" in result.output.lower()
        assert manifest_file.read_bytes() == original
        assert pm.calls == []

    def test_interactive_invalid_version(self, manifest_file, latest_info, fake_package_manager):
        """Invalid operator input exits 1 without changes."""
        original = manifest_file.read_bytes()

        result = self.invoke(["--manifest", str(manifest_file)], latest_info,
                             fake_package_manager(), input="2\nnot-a-version\n")

        assert result.exit_code == 1
        assert manifest_file.read_bytes() == original

    def test_unknown_current_needs_confirmation(self, tmp_path, latest_info, fake_package_manager):
        manifest = tmp_path / "Plugin.csproj"
        manifest.write_text("<Project>\n  <ItemGroup>\n  </ItemGroup>\n</Project>\n")

        result = self.invoke(["--manifest", str(manifest), "--update-to-latest"], latest_info,
                             fake_package_manager(), input="n\n")

        assert result.exit_code == 1
        assert manifest.read_text() == "<Project>\n  <ItemGroup>\n  </ItemGroup>\n</Project>\n"

    def test_missing_manifest_check_only(self, tmp_path, latest_info, fake_package_manager):
        """Check-only still reports when the manifest is missing."""
        result = self.invoke(["--manifest", str(tmp_path / "missing.csproj"), "--check-only"],
                             latest_info, fake_package_manager())

        assert result.exit_code == 0
        assert "unknown" in result.output.lower()

    def test_no_manifest_discovered_check_only(self, tmp_path, latest_info, fake_package_manager):
        """Check-only still reports the latest release when no manifest is found."""
        result = self.invoke(["--project-dir", str(tmp_path), "--check-only"],
                             latest_info, fake_package_manager())

        assert result.exit_code == 0
        assert "1.0.150" in result.output
        assert "not found" in result.output

    def test_no_manifest_discovered(self, tmp_path, latest_info, fake_package_manager):
        result = self.invoke(["--project-dir", str(tmp_path), "--update-to-latest"],
                             latest_info, fake_package_manager())

        assert result.exit_code == 1
        assert "No single manifest" in result.output

    def test_json_never_prompts(self, manifest_file, latest_info, fake_package_manager):
        """JSON output is non-interactive; a decision that needs an operator fails."""
        original = manifest_file.read_bytes()
        pm = fake_package_manager()

        result = self.invoke(["--manifest", str(manifest_file), "--format", "json"],
                             latest_info, pm, input="1\n")

        assert result.exit_code == 1
        assert "Choose an action" not in result.output
        assert "--update-to-latest" in result.output
        assert manifest_file.read_bytes() == original
        assert pm.calls == []

    def test_json_stale_backup_is_not_touched(self, manifest_file, latest_info, fake_package_manager):
        backup = ManifestHandle(manifest_file, PACKAGE_ID).backup_path
        backup.write_text("from a crashed run")

        result = self.invoke(
            ["--manifest", str(manifest_file), "--update-to-latest", "--format", "json"],
            latest_info, fake_package_manager(), input="d\n",
        )

        assert result.exit_code == 1
        assert "[r/d/a]" not in result.output
        assert backup.read_text() == "from a crashed run"

    def test_manifest_discovered_in_project_dir(self, manifest_file, latest_info, fake_package_manager):
        result = self.invoke(["--project-dir", str(manifest_file.parent), "--update-to-latest"],
                             latest_info, fake_package_manager())

        assert result.exit_code == 0
        assert extract_version(ManifestHandle(manifest_file, PACKAGE_ID)) == "1.0.150"

    def test_stale_backup_abort(self, manifest_file, latest_info, fake_package_manager):
        """A leftover backup is never silently overwritten."""
        backup = ManifestHandle(manifest_file, PACKAGE_ID).backup_path
        backup.write_text("from a crashed run")

        result = self.invoke(["--manifest", str(manifest_file), "--update-to-latest"],
                             latest_info, fake_package_manager(), input="a\n")

        assert result.exit_code == 1
        assert backup.read_text() == "from a crashed run"

    def test_stale_backup_discard(self, manifest_file, latest_info, fake_package_manager):
        backup = ManifestHandle(manifest_file, PACKAGE_ID).backup_path
        backup.write_text("from a crashed run")

        result = self.invoke(
            ["--manifest", str(manifest_file), "--update-to-latest", "--stale-backup", "discard"],
            latest_info, fake_package_manager(),
        )

        assert result.exit_code == 0
        assert not backup.exists()
        assert extract_version(ManifestHandle(manifest_file, PACKAGE_ID)) == "1.0.150"

    def test_stale_backup_restore(self, manifest_file, sample_csproj, latest_info, fake_package_manager):
        """Restoring puts the pre-crash manifest back before updating."""
        backup = ManifestHandle(manifest_file, PACKAGE_ID).backup_path
        backup.write_text(sample_csproj)
        manifest_file.write_text("<Project>half written")

        result = self.invoke(["--manifest", str(manifest_file), "--update-to-latest"],
                             latest_info, fake_package_manager(), input="r\n")

        assert result.exit_code == 0
        assert not backup.exists()
        assert extract_version(ManifestHandle(manifest_file, PACKAGE_ID)) == "1.0.150"

    def test_stale_backup_check_only_untouched(self, manifest_file, latest_info, fake_package_manager):
        backup = ManifestHandle(manifest_file, PACKAGE_ID).backup_path
        backup.write_text("from a crashed run")

        result = self.invoke(["--manifest", str(manifest_file), "--check-only"],
                             latest_info, fake_package_manager())

        assert result.exit_code == 0
        assert backup.read_text() == "from a crashed run"
        assert "backup" in result.output.lower()

    def test_no_build_flag(self, manifest_file, latest_info, fake_package_manager):
        pm = fake_package_manager(build_ok=False)
        result = self.invoke(["--manifest", str(manifest_file), "--update-to-latest", "--no-build"],
                             latest_info, pm)

        assert result.exit_code == 0
        assert "build" not in pm.calls
