"""Injection engine: strategy registry and multi-target orchestration."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from .exceptions import BTWError, ErrorCode
from .fs import FileSystem, PathResolver
from .logging import get_logger
from .models import (
    AITarget,
    EjectOptions,
    InjectionResult,
    InjectionStatus,
    InjectOptions,
    Manifest,
    MultiInjectionResult,
    MultiInjectOptions,
    OperationResult,
    now_iso,
)
from .state import StateRecorder
from .strategies import BUILTIN_STRATEGIES, InjectionStrategy

logger = get_logger(__name__)


def _error_message(error: BaseException) -> str:
    if isinstance(error, BTWError):
        return error.message
    return str(error) or error.__class__.__name__


class InjectionEngine:
    """Dispatches inject/eject/status calls to per-target strategies.

    Single-target calls turn strategy exceptions into failed
    ``OperationResult``s. The one exception that escapes is an unsupported
    target, which is a caller error rather than a runtime condition.
    """

    def __init__(
        self,
        strategies: Iterable[InjectionStrategy] | None = None,
        file_system: FileSystem | None = None,
        path_resolver: PathResolver | None = None,
        state_manager: StateRecorder | None = None,
        register_builtins: bool = True,
    ) -> None:
        """Initialize engine with the built-in strategies plus any custom ones.

        Args:
            strategies: Extra strategies; each replaces the built-in one for its target
            file_system: File abstraction handed to the built-in strategies
            path_resolver: Path resolution handed to the built-in strategies
            state_manager: Where injections are recorded; None disables recording
            register_builtins: Start from the four built-in strategies
        """
        self.fs = file_system or FileSystem()
        self.paths = path_resolver or PathResolver()
        self.state = state_manager
        self._strategies: dict[AITarget, InjectionStrategy] = {}

        if register_builtins:
            for strategy_class in BUILTIN_STRATEGIES:
                self.register_strategy(strategy_class(self.fs, self.paths))

        for strategy in strategies or ():
            self.register_strategy(strategy)

    def register_strategy(self, strategy: InjectionStrategy) -> None:
        self._strategies[strategy.target] = strategy

    def get_strategy(self, target: AITarget) -> InjectionStrategy | None:
        return self._strategies.get(target)

    def is_target_supported(self, target: AITarget) -> bool:
        return target in self._strategies

    def get_supported_targets(self) -> list[AITarget]:
        return list(self._strategies)

    def validate_manifest_for_target(self, manifest: Manifest, target: AITarget) -> bool:
        return bool(manifest.targets) and target in manifest.targets

    def _require_strategy(self, target: AITarget) -> InjectionStrategy:
        strategy = self.get_strategy(target)
        if strategy is None:
            raise BTWError(
                ErrorCode.TARGET_NOT_SUPPORTED,
                f"Target '{target}' is not supported",
                {"target": str(target)},
            )
        return strategy

    def inject(
        self,
        manifest: Manifest,
        target: AITarget,
        options: InjectOptions,
    ) -> OperationResult[InjectionResult]:
        """Inject ``manifest`` into a single target.

        Raises:
            BTWError: TARGET_NOT_SUPPORTED if no strategy is registered for ``target``
        """
        strategy = self._require_strategy(target)

        if not self.validate_manifest_for_target(manifest, target):
            return OperationResult[InjectionResult](
                success=False,
                error=f"Manifest does not support target '{target}'",
            )

        try:
            result = self._inject_with_strategy(strategy, manifest, options)
        except Exception as e:
            if isinstance(e, BTWError) and e.code == ErrorCode.TARGET_NOT_SUPPORTED:
                raise
            logger.warning(
                "inject_failed",
                target=str(target),
                workflow_id=manifest.id,
                error=_error_message(e),
            )
            return OperationResult[InjectionResult](success=False, error=_error_message(e))

        return OperationResult[InjectionResult](success=True, data=result)

    def _inject_with_strategy(
        self,
        strategy: InjectionStrategy,
        manifest: Manifest,
        options: InjectOptions,
    ) -> InjectionResult:
        result = strategy.inject(manifest, options)
        self.record_injection(options.project_root, manifest.id)
        return result

    def record_injection(self, project_root: Path, workflow_id: str) -> bool:
        """Advisory: stamp ``lastInjectedAt`` on a tracked workflow.

        Failures are logged and reported through the return value, never
        raised.

        Returns:
            True if the state was updated and saved
        """
        if self.state is None:
            return False

        try:
            project = self.state.get_project_state(project_root)
            if project is None or project.find_workflow(workflow_id) is None:
                return False
            self.state.update_workflow(project_root, workflow_id, last_injected_at=now_iso())
            self.state.save()
        except Exception as e:
            logger.warning(
                "state_update_failed",
                project_root=str(project_root),
                workflow_id=workflow_id,
                error=_error_message(e),
            )
            return False

        return True

    def inject_multiple(
        self,
        manifest: Manifest,
        options: MultiInjectOptions,
    ) -> MultiInjectionResult:
        """Inject into several targets, isolating failures per target.

        Unsupported targets and targets the manifest does not declare are
        skipped without being counted as failures. Never raises.
        """
        targets = options.targets if options.targets is not None else manifest.targets
        single = options.for_single_target()
        outcome = MultiInjectionResult()

        for target in targets:
            if not self.is_target_supported(target):
                logger.debug("target_skipped", target=str(target), reason="unsupported")
                continue
            if not self.validate_manifest_for_target(manifest, target):
                logger.debug("target_skipped", target=str(target), reason="not_in_manifest")
                continue

            try:
                outcome.results[target] = self._inject_with_strategy(
                    self._strategies[target], manifest, single,
                )
            except Exception as e:
                logger.warning(
                    "inject_failed",
                    target=str(target),
                    workflow_id=manifest.id,
                    error=_error_message(e),
                )
                outcome.failures[target] = e

        return outcome

    def eject(self, target: AITarget, options: EjectOptions) -> OperationResult[None]:
        """Remove injected content from a single target.

        Raises:
            BTWError: TARGET_NOT_SUPPORTED if no strategy is registered for ``target``
        """
        strategy = self._require_strategy(target)

        try:
            strategy.eject(options)
        except Exception as e:
            if isinstance(e, BTWError) and e.code == ErrorCode.TARGET_NOT_SUPPORTED:
                raise
            logger.warning("eject_failed", target=str(target), error=_error_message(e))
            return OperationResult[None](success=False, error=_error_message(e))

        return OperationResult[None](success=True)

    def eject_all(
        self,
        project_root: Path,
        restore_backup: bool = False,
        clean: bool = False,
    ) -> OperationResult[None]:
        """Eject every target that currently reports an injection.

        Per-target failures become warnings; the call itself still succeeds.
        """
        try:
            statuses = self.get_all_statuses(project_root)
        except Exception as e:
            return OperationResult[None](success=False, error=_error_message(e))

        options = EjectOptions(
            project_root=project_root,
            restore_backup=restore_backup,
            clean=clean,
        )
        warnings: list[str] = []

        for target, status in statuses.items():
            if not status.is_injected:
                continue
            try:
                self._strategies[target].eject(options)
            except Exception as e:
                warnings.append(f"Failed to eject from {target}: {_error_message(e)}")

        return OperationResult[None](success=True, warnings=warnings or None)

    def get_status(self, target: AITarget, project_root: Path) -> InjectionStatus:
        return self._require_strategy(target).get_status(project_root)

    def get_all_statuses(self, project_root: Path) -> dict[AITarget, InjectionStatus]:
        return {
            target: strategy.get_status(project_root)
            for target, strategy in self._strategies.items()
        }

    def validate(self, project_root: Path) -> dict[AITarget, bool]:
        """Run every strategy's structural check against ``project_root``."""
        return {
            target: strategy.validate(project_root)
            for target, strategy in self._strategies.items()
        }
