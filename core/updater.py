"""Guarded manifest update with snapshot and rollback."""

import logging
import shutil

from .compare import compare_versions
from .errors import BuildFailure, DepbumpError, MutationFailure, StaleBackupError
from .extract import VersionPatternSet, extract_version, read_manifest, write_manifest
from .models import Comparison, ManifestHandle, UpdateOutcome
from .package_manager import PackageManager

logger = logging.getLogger(__name__)


class ManifestTransaction:
    """Snapshot the manifest on entry, commit or roll back on exit.

    Leaving the block normally deletes the snapshot. Leaving it with an
    exception copies the snapshot back verbatim, re-runs dependency restore
    and deletes the snapshot, then lets the exception propagate.
    """

    def __init__(self, handle: ManifestHandle, package_manager: PackageManager):
        self.handle = handle
        self.package_manager = package_manager
        self.active = False

    def begin(self) -> None:
        manifest = self.handle.path
        backup = self.handle.backup_path
        if not manifest.is_file():
            raise MutationFailure(f"Manifest {manifest} not found, nothing to update")
        if backup.exists():
            raise MutationFailure(
                f"Backup {backup} already exists; resolve it before updating",
                details={"backup": str(backup)},
            )
        shutil.copy2(manifest, backup)
        self.active = True
        logger.info("Snapshot of %s saved to %s", manifest, backup)

    def restore_snapshot(self) -> None:
        """Put the snapshot content back while keeping the snapshot."""
        shutil.copyfile(self.handle.backup_path, self.handle.path)

    def commit(self) -> None:
        self.handle.backup_path.unlink()
        self.active = False
        logger.info("Update of %s committed", self.handle.path)

    def rollback(self) -> Exception | None:
        """Restore the snapshot; returns any restore error instead of raising it."""
        logger.warning("Rolling back %s from %s", self.handle.path, self.handle.backup_path)
        try:
            self.restore_snapshot()
            self.handle.backup_path.unlink()
        except OSError as e:
            logger.error("Rollback of %s failed, backup left at %s: %s",
                         self.handle.path, self.handle.backup_path, e)
            return e
        finally:
            self.active = False

        try:
            restored = self.package_manager.restore(self.handle.path)
        except Exception as e:
            logger.error("Dependency restore after rollback raised: %s", e)
            return e
        if not restored.ok:
            logger.warning("Dependency restore after rollback failed:\n%s", restored.tail())
        return None

    def __enter__(self) -> "ManifestTransaction":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if not self.active:
            return False
        if exc is None:
            self.commit()
            return False

        rollback_error = self.rollback()
        if rollback_error is not None and isinstance(exc, DepbumpError):
            exc.details["rollback_error"] = str(rollback_error)
        return False


def recover_stale_backup(handle: ManifestHandle, action: str) -> None:
    """Deal with a backup left behind by an interrupted run.

    Args:
        handle: Manifest whose backup was found
        action: "restore" copies the backup over the manifest, "discard"
            deletes it, anything else aborts

    Raises:
        StaleBackupError: If the operator chose not to touch the backup
    """
    backup = handle.backup_path
    if action == "restore":
        shutil.copyfile(backup, handle.path)
        backup.unlink()
        logger.warning("Restored %s from stale backup %s", handle.path, backup)
    elif action == "discard":
        backup.unlink()
        logger.warning("Discarded stale backup %s", backup)
    else:
        raise StaleBackupError(
            f"Stale backup {backup} left in place; restore or discard it to continue",
            details={"backup": str(backup)},
        )


class ManifestUpdater:
    """Pin a new version in the manifest and prove the project still builds."""

    def __init__(self, package_manager: PackageManager, run_build: bool = True):
        self.package_manager = package_manager
        self.run_build = run_build

    def apply(self, handle: ManifestHandle, target_version: str) -> UpdateOutcome:
        """Update the manifest to ``target_version``.

        The package manager's remove/add commands are tried first; if they do
        not leave the target pinned, the version is substituted in the text.
        Dependencies are then restored (failure only warns) and the project
        rebuilt (failure rolls everything back).

        Args:
            handle: Manifest and package to update
            target_version: Version to pin

        Returns:
            What changed and how

        Raises:
            MutationFailure: If the manifest is missing or could not be rewritten
            BuildFailure: If the rebuilt project does not compile
        """
        previous = extract_version(handle)
        warnings: list[str] = []

        with ManifestTransaction(handle, self.package_manager) as transaction:
            method = self._mutate(handle, target_version, transaction)

            restored = self.package_manager.restore(handle.path)
            if not restored.ok:
                message = "Dependency restore reported problems (continuing)"
                logger.warning("%s:\n%s", message, restored.tail())
                warnings.append(message)

            if self.run_build:
                built = self.package_manager.build(handle.path)
                if not built.ok:
                    raise BuildFailure(
                        f"Build failed with {handle.package_id} {target_version}",
                        output=built.tail(),
                    )

        logger.info("%s updated from %s to %s via %s",
                    handle.path, previous, target_version, method)
        return UpdateOutcome(
            manifest=handle.path,
            previous_version=previous,
            new_version=target_version,
            method=method,
            warnings=warnings,
        )

    def _mutate(self, handle: ManifestHandle, target_version: str,
                transaction: ManifestTransaction) -> str:
        if self._mutate_with_package_manager(handle, target_version):
            return "package-manager"

        logger.warning("Package manager update failed, falling back to text substitution")
        # remove may already have run
        transaction.restore_snapshot()

        content = read_manifest(handle.path)
        updated = None
        if content is not None:
            updated = VersionPatternSet(handle.package_id).replace_version(content, target_version)
        if updated is None:
            raise MutationFailure(
                f"Could not rewrite {handle.package_id} in {handle.path}",
                details={"manifest": str(handle.path)},
            )

        write_manifest(handle.path, updated)
        return "text-substitution"

    def _mutate_with_package_manager(self, handle: ManifestHandle, target_version: str) -> bool:
        removed = self.package_manager.remove_package(handle.path, handle.package_id)
        if not removed.ok:
            return False

        added = self.package_manager.add_package(handle.path, handle.package_id, target_version)
        if not added.ok:
            return False

        pinned = extract_version(handle)
        if compare_versions(pinned, target_version) is not Comparison.SAME:
            logger.warning("Package manager left %s pinned at %s", handle.package_id, pinned)
            return False
        return True
