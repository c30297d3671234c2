"""Decide whether and to which version the manifest should be updated."""

import logging
from typing import Protocol

from .compare import compare_versions, normalize_version, parse_version
from .errors import OperatorAbort
from .models import Comparison, PlanMode, RemoteVersionInfo, UpdatePlan

logger = logging.getLogger(__name__)

CHOICE_LATEST = "latest"
CHOICE_CUSTOM = "custom"
CHOICE_ABORT = "abort"


class OperatorPrompt(Protocol):
    """Interactive input the planner may need."""

    def choose_action(self, current: str | None, latest: str) -> str: ...

    def ask_version(self) -> str: ...

    def confirm(self, message: str) -> bool: ...


def plan_mode(check_only: bool, force: bool, target_version: str | None) -> PlanMode:
    if check_only:
        return PlanMode.CHECK_ONLY
    if target_version is not None:
        return PlanMode.EXPLICIT_VERSION
    if force:
        return PlanMode.FORCE_APPLY
    return PlanMode.INTERACTIVE


class UpdatePlanner:
    """Turns flags and resolved versions into an UpdatePlan.

    Explicit target beats latest, force beats the "already current"
    short-circuit, and check-only never proceeds. The operator is only asked
    when no flag settles the target.
    """

    def __init__(self, prompt: OperatorPrompt | None = None):
        self.prompt = prompt

    def plan(
        self,
        current: str | None,
        latest: RemoteVersionInfo,
        check_only: bool = False,
        force: bool = False,
        update_to_latest: bool = False,
        target_version: str | None = None,
    ) -> UpdatePlan:
        comparison = compare_versions(latest.version, current)
        mode = plan_mode(check_only, force, target_version)
        warnings: list[str] = []

        if comparison is Comparison.OLDER:
            warnings.append(
                f"Current version {current} is newer than the latest release "
                f"{latest.version} (prerelease build?)"
            )
        elif comparison is Comparison.UNKNOWN:
            warnings.append("Current version is unknown; cannot tell whether an update is needed")

        def decide(target: str | None, proceed: bool, reason: str) -> UpdatePlan:
            logger.debug("Plan: mode=%s comparison=%s proceed=%s (%s)",
                         mode.value, comparison.value, proceed, reason)
            return UpdatePlan(
                current_version=current,
                target_version=target,
                comparison=comparison,
                mode=mode,
                proceed=proceed,
                reason=reason,
                warnings=warnings,
            )

        if mode is PlanMode.CHECK_ONLY:
            return decide(latest.version, False, self._check_only_reason(comparison, current, latest))

        if target_version is not None:
            return self._plan_target(decide, current, target_version, force, warnings)

        if comparison is Comparison.SAME:
            if not force:
                return decide(latest.version, False, f"Already up to date ({current})")
            return decide(latest.version, True, f"Re-applying {latest.version} (forced)")

        if comparison is Comparison.NEWER and (force or update_to_latest):
            return decide(latest.version, True, f"Updating {current} -> {latest.version}")

        if comparison is Comparison.OLDER and force:
            return decide(latest.version, True, f"Applying {latest.version} over {current} (forced)")

        if comparison is Comparison.UNKNOWN and (force or update_to_latest):
            if not self._require_prompt().confirm(
                f"Current version is unknown. Apply {latest.version} anyway?"
            ):
                raise OperatorAbort("Update not confirmed")
            return decide(latest.version, True, f"Applying {latest.version} (confirmed)")

        return self._choose(decide, current, latest, force, warnings)

    def _choose(self, decide, current, latest, force, warnings) -> UpdatePlan:
        prompt = self._require_prompt()
        choice = prompt.choose_action(current, latest.version)
        if choice == CHOICE_LATEST:
            return decide(latest.version, True, f"Updating {current} -> {latest.version}")
        if choice == CHOICE_CUSTOM:
            return self._plan_target(decide, current, prompt.ask_version(), force, warnings)
        if choice == CHOICE_ABORT:
            raise OperatorAbort("Update aborted by operator")
        raise OperatorAbort(f"Invalid choice: {choice!r}")

    def _plan_target(self, decide, current, target_version, force, warnings) -> UpdatePlan:
        target = normalize_version(target_version)
        if parse_version(target) is None:
            raise OperatorAbort(f"Invalid version: {target_version!r}")

        relation = compare_versions(target, current)
        if relation is Comparison.SAME and not force:
            return decide(target, False, f"Already at target version {target}")
        if relation is Comparison.OLDER:
            warnings.append(f"Target {target} is older than current {current} (downgrade)")
        return decide(target, True, f"Updating {current} -> {target}")

    def _require_prompt(self) -> OperatorPrompt:
        if self.prompt is None:
            raise OperatorAbort(
                "Operator input required; pass --update-to-latest or --target-version"
            )
        return self.prompt

    @staticmethod
    def _check_only_reason(comparison: Comparison, current: str | None,
                           latest: RemoteVersionInfo) -> str:
        if comparison is Comparison.SAME:
            return f"Already up to date ({current})"
        if comparison is Comparison.NEWER:
            return f"Update available: {current} -> {latest.version}"
        if comparison is Comparison.OLDER:
            return f"Current {current} is ahead of latest release {latest.version}"
        return f"Latest version is {latest.version}; current version unknown"
