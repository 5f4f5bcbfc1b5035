"""Workflow registry: local workflow installs and their per-project tracking."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .constants import MANIFEST_FILENAME, WORKFLOWS_DIR
from .engine import InjectionEngine
from .exceptions import BTWError, ErrorCode
from .fs import FileSystem, PathResolver
from .logging import get_logger
from .manifest import load_manifest
from .models import EjectOptions, Manifest, WorkflowState
from .state import StateManager

logger = get_logger(__name__)


@dataclass
class WorkflowDetails:
    """A tracked workflow plus its manifest, when the installed copy still loads."""

    state: WorkflowState
    manifest: Manifest | None = None


class WorkflowManager:
    """Installs workflows from local directories and tracks them per project.

    Installed copies live in ``workflows_dir/<workflow-id>``; the state file
    records which projects use which workflow.
    """

    def __init__(
        self,
        state_manager: StateManager,
        engine: InjectionEngine | None = None,
        file_system: FileSystem | None = None,
        path_resolver: PathResolver | None = None,
        workflows_dir: Path | None = None,
    ) -> None:
        """Initialize manager.

        Args:
            state_manager: Initialized state; every mutation is saved through it
            engine: Used to eject a workflow's blocks on removal
            file_system: File abstraction, defaults to the real file system
            path_resolver: Path normalization for sources and project roots
            workflows_dir: Where installed copies live, defaults to ``~/.btw/workflows``
        """
        self.state = state_manager
        self.engine = engine
        self.fs = file_system or FileSystem()
        self.paths = path_resolver or PathResolver()
        self.workflows_dir = Path(workflows_dir or WORKFLOWS_DIR)

    def workflow_path(self, workflow_id: str) -> Path:
        return self.workflows_dir / workflow_id

    def is_installed(self, project_root: Path, workflow_id: str) -> bool:
        project = self.state.get_project_state(project_root)
        return project is not None and project.find_workflow(workflow_id) is not None

    def load_manifest(self, workflow_id: str) -> Manifest:
        """Load the manifest of an installed workflow."""
        return load_manifest(self.workflow_path(workflow_id))

    def add(
        self,
        source: Path,
        project_root: Path,
        *,
        force: bool = False,
        workflow_id: str | None = None,
    ) -> WorkflowState:
        """Copy a local workflow directory into the store and track it.

        The ID comes from ``workflow_id``, else the source manifest, else the
        source directory name.

        Raises:
            BTWError: FILE_NOT_FOUND or INVALID_ARGUMENT for a bad source,
                WORKFLOW_ALREADY_EXISTS unless ``force``,
                WORKFLOW_INSTALLATION_FAILED when the copy fails,
                MANIFEST_* when the installed copy has no valid manifest
        """
        source_path = self.paths.normalize(source)
        if not self.fs.exists(source_path):
            raise BTWError(
                ErrorCode.FILE_NOT_FOUND,
                f"Source path not found: {source_path}",
                {"source": str(source)},
            )
        if not source_path.is_dir():
            raise BTWError(
                ErrorCode.INVALID_ARGUMENT,
                f"Workflow source must be a directory: {source_path}",
                {"source": str(source)},
            )

        if workflow_id is None:
            source_manifest = source_path / MANIFEST_FILENAME
            if self.fs.exists(source_manifest):
                workflow_id = load_manifest(source_manifest).id
            else:
                workflow_id = source_path.name
        self._check_workflow_id(workflow_id)

        installed = self.is_installed(project_root, workflow_id)
        if installed and not force:
            raise BTWError(
                ErrorCode.WORKFLOW_ALREADY_EXISTS,
                f"Workflow '{workflow_id}' is already installed. Use --force to overwrite.",
                {"workflow_id": workflow_id, "source": str(source_path)},
            )

        target_dir = self.workflow_path(workflow_id)
        try:
            if self.fs.exists(target_dir):
                self.fs.remove(target_dir, recursive=True)
            self.fs.copy(source_path, target_dir)
        except BTWError as e:
            raise BTWError(
                ErrorCode.WORKFLOW_INSTALLATION_FAILED,
                f"Failed to copy workflow from {source_path}",
                {"workflow_id": workflow_id, "source": str(source_path)},
                e,
            ) from e

        try:
            manifest = self.load_manifest(workflow_id)
        except BTWError:
            self._discard_copy(target_dir)
            raise

        workflow = WorkflowState(
            workflow_id=workflow_id,
            version=manifest.version,
            source=str(source_path),
        )
        if installed:
            self.state.remove_workflow(project_root, workflow_id)
        self.state.add_workflow(project_root, workflow)
        self.state.save()

        logger.info(
            "workflow_added",
            workflow_id=workflow_id,
            project_root=str(project_root),
            source=str(source_path),
        )
        return workflow

    def list(
        self,
        project_root: Path,
        *,
        active_only: bool = False,
        detailed: bool = False,
    ) -> list[WorkflowDetails]:
        """Workflows tracked in ``project_root``, optionally with manifests."""
        project = self.state.get_project_state(project_root)
        if project is None:
            return []

        details = []
        for workflow in project.workflows:
            if active_only and not workflow.active:
                continue
            manifest = self._try_load_manifest(workflow.workflow_id) if detailed else None
            details.append(WorkflowDetails(state=workflow, manifest=manifest))
        return details

    def get(self, project_root: Path, workflow_id: str) -> WorkflowDetails:
        """Look up one tracked workflow.

        Raises:
            BTWError: WORKFLOW_NOT_FOUND if the project does not track it
        """
        project = self.state.get_project_state(project_root)
        workflow = project.find_workflow(workflow_id) if project else None
        if workflow is None:
            raise BTWError(
                ErrorCode.WORKFLOW_NOT_FOUND,
                f"Workflow '{workflow_id}' is not installed",
                {"workflow_id": workflow_id, "project_path": str(project_root)},
            )
        return WorkflowDetails(state=workflow, manifest=self._try_load_manifest(workflow_id))

    def remove(
        self,
        project_root: Path,
        workflow_id: str,
        *,
        purge: bool = False,
        keep_injection: bool = False,
    ) -> list[str]:
        """Eject, untrack and delete an installed workflow.

        Targets owned by the workflow are ejected first: restoring backups,
        or cleaning tool files entirely with ``purge``. The installed copy is
        kept while another project still tracks it.

        Returns:
            Warnings for targets that could not be ejected

        Raises:
            BTWError: WORKFLOW_NOT_FOUND if the project does not track it,
                WORKFLOW_REMOVAL_FAILED if the installed copy cannot be deleted
        """
        if not self.is_installed(project_root, workflow_id):
            raise BTWError(
                ErrorCode.WORKFLOW_NOT_FOUND,
                f"Workflow '{workflow_id}' is not installed",
                {"workflow_id": workflow_id, "project_path": str(project_root)},
            )

        warnings: list[str] = []
        if not keep_injection and self.engine is not None:
            warnings = self._eject_owned_targets(project_root, workflow_id, purge)

        if not self._used_elsewhere(project_root, workflow_id):
            target_dir = self.workflow_path(workflow_id)
            try:
                self.fs.remove(target_dir, recursive=True)
            except BTWError as e:
                if e.code != ErrorCode.FILE_NOT_FOUND:
                    raise BTWError(
                        ErrorCode.WORKFLOW_REMOVAL_FAILED,
                        f"Failed to remove workflow directory: {target_dir}",
                        {"workflow_id": workflow_id, "path": str(target_dir)},
                        e,
                    ) from e

        self.state.remove_workflow(project_root, workflow_id)
        self.state.save()

        logger.info(
            "workflow_removed",
            workflow_id=workflow_id,
            project_root=str(project_root),
            purge=purge,
        )
        return warnings

    def _eject_owned_targets(
        self,
        project_root: Path,
        workflow_id: str,
        purge: bool,
    ) -> list[str]:
        options = EjectOptions(
            project_root=project_root,
            restore_backup=not purge,
            clean=purge,
        )
        warnings = []
        for target, status in self.engine.get_all_statuses(project_root).items():
            if status.workflow_id != workflow_id:
                continue
            result = self.engine.eject(target, options)
            if not result.success:
                warnings.append(f"Failed to eject from {target}: {result.error}")
        return warnings

    def _used_elsewhere(self, project_root: Path, workflow_id: str) -> bool:
        own_key = str(self.paths.normalize(project_root))
        return any(
            project.find_workflow(workflow_id) is not None
            for key, project in self.state.get_state().projects.items()
            if key != own_key
        )

    def _try_load_manifest(self, workflow_id: str) -> Manifest | None:
        try:
            return self.load_manifest(workflow_id)
        except BTWError as e:
            logger.debug("manifest_unavailable", workflow_id=workflow_id, error=e.message)
            return None

    def _discard_copy(self, target_dir: Path) -> None:
        try:
            self.fs.remove(target_dir, recursive=True)
        except BTWError as e:
            logger.warning("workflow_cleanup_failed", path=str(target_dir), error=e.message)

    @staticmethod
    def _check_workflow_id(workflow_id: str) -> None:
        if not workflow_id or Path(workflow_id).name != workflow_id or workflow_id in (".", ".."):
            raise BTWError(
                ErrorCode.INVALID_ARGUMENT,
                f"Invalid workflow ID: {workflow_id!r}",
                {"workflow_id": workflow_id},
            )
