"""Persistence of installed-workflow state in a JSON file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from .constants import STATE_FILE, STATE_VERSION
from .exceptions import BTWError, ErrorCode
from .fs import FileSystem, PathResolver
from .logging import get_logger
from .models import BTWState, ProjectState, WorkflowState, now_iso

logger = get_logger(__name__)


class StateRecorder(Protocol):
    """What the injection engine needs from state persistence."""

    def get_project_state(self, project_path: Path | str) -> ProjectState | None: ...

    def update_workflow(
        self,
        project_path: Path | str,
        workflow_id: str,
        *,
        last_injected_at: str | None = None,
    ) -> None: ...

    def save(self) -> None: ...


class StateManager:
    """Loads, mutates and saves the global ``state.json``.

    Mutations only mark the state dirty; nothing reaches disk until
    ``save()`` is called.
    """

    def __init__(
        self,
        state_path: Path | None = None,
        file_system: FileSystem | None = None,
        path_resolver: PathResolver | None = None,
    ) -> None:
        self.state_path = Path(state_path or STATE_FILE)
        self.fs = file_system or FileSystem()
        self.paths = path_resolver or PathResolver()
        self._state: BTWState | None = None
        self._dirty = False

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def initialize(self, create_if_missing: bool = True) -> None:
        """Load the state file, or create an empty one.

        Raises:
            BTWError: STATE_NOT_FOUND when missing and not allowed to create,
                STATE_CORRUPTED when the file is not valid state JSON
        """
        if self.fs.exists(self.state_path):
            self.reload()
        elif create_if_missing:
            self._state = BTWState(version=STATE_VERSION)
            self._dirty = True
            self.save()
        else:
            raise BTWError(
                ErrorCode.STATE_NOT_FOUND,
                f"State file not found: {self.state_path}",
                {"state_path": str(self.state_path)},
            )

    def reload(self) -> None:
        content = self.fs.read_file(self.state_path)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise BTWError(
                ErrorCode.STATE_CORRUPTED,
                f"State file contains invalid JSON: {self.state_path}",
                {"state_path": str(self.state_path)},
                e,
            ) from e

        try:
            self._state = BTWState.model_validate(data)
        except ValidationError as e:
            raise BTWError(
                ErrorCode.STATE_CORRUPTED,
                f"State file has invalid structure: {self.state_path}",
                {"state_path": str(self.state_path)},
                e,
            ) from e
        self._dirty = False

    def get_state(self) -> BTWState:
        if self._state is None:
            raise BTWError(ErrorCode.STATE_NOT_FOUND, "State not initialized")
        return self._state

    def _key(self, project_path: Path | str) -> str:
        return str(self.paths.normalize(project_path))

    def get_project_state(self, project_path: Path | str) -> ProjectState | None:
        return self.get_state().projects.get(self._key(project_path))

    def add_workflow(self, project_path: Path | str, workflow: WorkflowState) -> None:
        """Track ``workflow`` in a project, creating the project entry if needed."""
        state = self.get_state()
        key = self._key(project_path)
        project = state.projects.get(key)
        if project is None:
            project = ProjectState(project_path=key)
            state.projects[key] = project

        if project.find_workflow(workflow.workflow_id) is not None:
            raise BTWError(
                ErrorCode.WORKFLOW_ALREADY_EXISTS,
                f"Workflow '{workflow.workflow_id}' already exists in project",
                {"project_path": key, "workflow_id": workflow.workflow_id},
            )

        project.workflows.append(workflow)
        project.last_modified_at = now_iso()
        self._dirty = True

    def update_workflow(
        self,
        project_path: Path | str,
        workflow_id: str,
        *,
        last_injected_at: str | None = None,
    ) -> None:
        key = self._key(project_path)
        project = self.get_state().projects.get(key)
        workflow = project.find_workflow(workflow_id) if project else None
        if project is None or workflow is None:
            raise BTWError(
                ErrorCode.WORKFLOW_NOT_FOUND,
                f"Workflow '{workflow_id}' not found in project {key}",
                {"project_path": key, "workflow_id": workflow_id},
            )

        if last_injected_at is not None:
            workflow.last_injected_at = last_injected_at
        project.last_modified_at = now_iso()
        self._dirty = True

    def remove_workflow(self, project_path: Path | str, workflow_id: str) -> None:
        """Stop tracking ``workflow_id`` in a project.

        Raises:
            BTWError: WORKFLOW_NOT_FOUND if the project does not track it
        """
        key = self._key(project_path)
        project = self.get_state().projects.get(key)
        workflow = project.find_workflow(workflow_id) if project else None
        if project is None or workflow is None:
            raise BTWError(
                ErrorCode.WORKFLOW_NOT_FOUND,
                f"Workflow '{workflow_id}' not found in project {key}",
                {"project_path": key, "workflow_id": workflow_id},
            )

        project.workflows.remove(workflow)
        project.last_modified_at = now_iso()
        self._dirty = True

    def save(self) -> None:
        if not self._dirty:
            return

        state = self.get_state()
        payload = json.dumps(state.model_dump(mode="json", by_alias=True), indent=2)
        try:
            self.fs.write_file(self.state_path, payload, create_dirs=True)
        except BTWError as e:
            raise BTWError(
                ErrorCode.STATE_WRITE_ERROR,
                f"Failed to save state to {self.state_path}",
                {"state_path": str(self.state_path)},
                e,
            ) from e
        self._dirty = False
        logger.debug("state_saved", state_path=str(self.state_path))
