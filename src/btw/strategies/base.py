"""Base class for per-target injection strategies."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import jsonschema

from .. import markers
from ..constants import BTW_VERSION, END_SENTINEL, START_SENTINEL
from ..exceptions import BTWError, ErrorCode
from ..fs import AiToolPaths, FileSystem, PathResolver, backup_path_for
from ..logging import get_logger
from ..models import (
    AgentDefinition,
    AITarget,
    EjectOptions,
    InjectionResult,
    InjectionStatus,
    InjectOptions,
    Manifest,
    now_iso,
)

logger = get_logger(__name__)

BTW_METADATA_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["workflowId", "injectedAt", "version"],
    "properties": {
        "workflowId": {"type": "string"},
        "injectedAt": {"type": "string"},
        "version": {"type": "string"},
    },
}

BASE_CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {"_btw": BTW_METADATA_SCHEMA},
}


class InjectionStrategy(ABC):
    """Writes, detects and removes a workflow's generated block for one target.

    Subclasses only decide what the block and config look like; the
    marker-based merge and eject algorithm lives here.
    """

    target: AITarget
    config_schema: dict[str, Any] = BASE_CONFIG_SCHEMA

    def __init__(
        self,
        file_system: FileSystem | None = None,
        path_resolver: PathResolver | None = None,
    ) -> None:
        """Initialize strategy with its file and path collaborators.

        Args:
            file_system: File abstraction, defaults to the real file system
            path_resolver: Resolves the target's files under a project root
        """
        self.fs = file_system or FileSystem()
        self.paths = path_resolver or PathResolver()

    def can_handle(self, target: AITarget) -> bool:
        return target == self.target

    def resolve_paths(self, project_root: Path) -> AiToolPaths:
        return self.paths.resolve_ai_tool_paths(project_root, self.target)

    @abstractmethod
    def render_instructions(self, manifest: Manifest, timestamp: str) -> str:
        """Render the block body (without sentinels or marker)."""

    @abstractmethod
    def render_config(self, manifest: Manifest, timestamp: str) -> dict[str, Any]:
        """Build the target's structured settings."""

    def generate_instructions(self, manifest: Manifest) -> str:
        """Render the complete generated block for ``manifest``."""
        timestamp = now_iso()
        body = self.render_instructions(manifest, timestamp)
        return markers.build_block(manifest.id, body, timestamp)

    def generate_config(self, manifest: Manifest) -> str:
        """Render the target's settings file content as JSON."""
        config = self.render_config(manifest, now_iso())
        return json.dumps(config, indent=2)

    def inject(self, manifest: Manifest, options: InjectOptions) -> InjectionResult:
        """Write ``manifest``'s block into the target's instructions file.

        Raises:
            BTWError: INJECTION_FAILED on an ownership conflict or I/O error,
                BACKUP_FAILED when the backup copy cannot be made
        """
        paths = self.resolve_paths(options.project_root)
        host = paths.instructions_path
        backup_created = False
        backup_path: Path | None = None

        try:
            self.fs.mkdir(host.parent)

            existing: str | None = None
            if self.fs.exists(host):
                existing = self.fs.read_file(host)
                self._check_ownership(existing, manifest, options.force, host)
                if options.backup:
                    backup_path = self._create_backup(host)
                    backup_created = True

            block = self.generate_instructions(manifest)
            if options.merge and existing and existing.strip():
                content = markers.merge(existing, block)
            else:
                content = block

            self.fs.write_file(host, content, create_dirs=True)
        except BTWError as e:
            if e.code in (ErrorCode.INJECTION_FAILED, ErrorCode.BACKUP_FAILED):
                raise
            raise self._injection_failed("inject workflow into", host, e) from e
        except OSError as e:
            raise self._injection_failed("inject workflow into", host, e) from e

        logger.info(
            "workflow_injected",
            target=self.target.value,
            workflow_id=manifest.id,
            path=str(host),
            merged=options.merge,
            backup_created=backup_created,
        )
        return InjectionResult(
            target=self.target,
            config_path=host,
            agent_count=len(manifest.agents),
            backup_created=backup_created,
            backup_path=backup_path,
        )

    def eject(self, options: EjectOptions) -> None:
        """Remove the generated block, restore a backup, or clean up entirely.

        Raises:
            BTWError: RESTORE_FAILED when restoring the backup fails,
                INJECTION_FAILED on other I/O errors
        """
        paths = self.resolve_paths(options.project_root)
        host = paths.instructions_path
        backup = backup_path_for(host)

        try:
            if not self.fs.exists(host):
                return

            if options.clean:
                self._clean(paths)
                return

            if options.restore_backup and self.fs.exists(backup):
                self._restore_backup(backup, host)
                return

            content = self.fs.read_file(host)
            if markers.extract(content) is None:
                return

            remaining = markers.strip(content)
            if remaining.strip():
                self.fs.write_file(host, remaining)
            else:
                self.fs.remove(host)
        except BTWError as e:
            if e.code == ErrorCode.RESTORE_FAILED:
                raise
            raise self._injection_failed("eject workflow from", host, e) from e
        except OSError as e:
            raise self._injection_failed("eject workflow from", host, e) from e

        logger.info("workflow_ejected", target=self.target.value, path=str(host))

    def get_status(self, project_root: Path) -> InjectionStatus:
        """Report whether a block is present. Never raises."""
        try:
            host = self.resolve_paths(project_root).instructions_path
            backup = backup_path_for(host)
            has_backup = self.fs.exists(backup)
            backup_path = backup if has_backup else None

            if not self.fs.exists(host):
                return InjectionStatus(
                    is_injected=False, has_backup=has_backup, backup_path=backup_path,
                )

            info = markers.parse(self.fs.read_file(host))
        except (BTWError, OSError) as e:
            logger.debug("status_read_failed", target=self.target.value, error=str(e))
            return InjectionStatus(is_injected=False, has_backup=False)

        return InjectionStatus(
            is_injected=info is not None,
            workflow_id=info.workflow_id if info else None,
            injected_at=info.timestamp if info else None,
            has_backup=has_backup,
            backup_path=backup_path,
        )

    def validate(self, project_root: Path) -> bool:
        """Check that the target's files are structurally sound.

        Missing files are a valid (not yet injected) state.
        """
        try:
            paths = self.resolve_paths(project_root)

            if self.fs.exists(paths.instructions_path):
                content = self.fs.read_file(paths.instructions_path)
                start = content.find(START_SENTINEL)
                if start != -1 and content.find(END_SENTINEL, start) == -1:
                    return False

            if self.fs.exists(paths.config_path):
                data = json.loads(self.fs.read_file(paths.config_path))
                jsonschema.validate(data, self.config_schema)
        except (BTWError, OSError, json.JSONDecodeError, jsonschema.ValidationError) as e:
            logger.debug("validation_failed", target=self.target.value, error=str(e))
            return False

        return True

    def _check_ownership(
        self,
        existing: str,
        manifest: Manifest,
        force: bool,
        host: Path,
    ) -> None:
        info = markers.parse(existing)
        if info is None or info.workflow_id == manifest.id or force:
            return
        msg = (
            f"A different workflow ({info.workflow_id}) is already injected "
            f"into {host}. Use --force to override."
        )
        raise BTWError(
            ErrorCode.INJECTION_FAILED,
            msg,
            {
                "path": str(host),
                "existing_workflow_id": info.workflow_id,
                "new_workflow_id": manifest.id,
            },
        )

    def _create_backup(self, host: Path) -> Path:
        try:
            return self.fs.backup(host)
        except (BTWError, OSError) as e:
            raise BTWError(
                ErrorCode.BACKUP_FAILED,
                f"Failed to create backup of {host}",
                {"path": str(host)},
                e,
            ) from e

    def _restore_backup(self, backup: Path, host: Path) -> None:
        try:
            self.fs.restore(backup, host)
            self.fs.remove(backup)
        except (BTWError, OSError) as e:
            raise BTWError(
                ErrorCode.RESTORE_FAILED,
                f"Failed to restore from backup: {backup}",
                {"path": str(host), "backup_path": str(backup)},
                e,
            ) from e

    def _clean(self, paths: AiToolPaths) -> None:
        """Remove the tool directory and any host file living outside it."""
        self._remove_if_present(paths.tool_dir, recursive=True)

        host = paths.instructions_path
        if not host.is_relative_to(paths.tool_dir):
            self._remove_if_present(host)
            self._remove_if_present(backup_path_for(host))

    def _remove_if_present(self, path: Path, recursive: bool = False) -> None:
        try:
            self.fs.remove(path, recursive=recursive)
        except BTWError as e:
            if e.code != ErrorCode.FILE_NOT_FOUND:
                raise
            logger.debug("clean_path_missing", target=self.target.value, path=str(path))

    def _injection_failed(self, action: str, host: Path, error: BaseException) -> BTWError:
        reason = error.message if isinstance(error, BTWError) else str(error)
        return BTWError(
            ErrorCode.INJECTION_FAILED,
            f"Failed to {action} {self.target.value} configuration: {reason}",
            {"path": str(host), "target": self.target.value},
            error,
        )

    # Shared rendering helpers

    def _metadata(self, manifest: Manifest, timestamp: str) -> dict[str, str]:
        return {
            "workflowId": manifest.id,
            "injectedAt": timestamp,
            "version": BTW_VERSION,
        }

    @staticmethod
    def _workflow_info_lines(manifest: Manifest) -> list[str]:
        lines = [
            f"- **Workflow ID:** {manifest.id}",
            f"- **Version:** {manifest.version}",
        ]
        if manifest.author:
            lines.append(f"- **Author:** {manifest.author}")
        if manifest.repository:
            lines.append(f"- **Repository:** {manifest.repository}")
        return lines

    @staticmethod
    def _footer_lines(timestamp: str) -> list[str]:
        return [
            "---",
            "",
            f"*Injected by BTW v{BTW_VERSION} at {timestamp}*",
        ]

    @staticmethod
    def _agent_settings(agent: AgentDefinition) -> dict[str, Any]:
        settings: dict[str, Any] = {"id": agent.id, "name": agent.name}
        if agent.model:
            settings["model"] = agent.model
        if agent.temperature is not None:
            settings["temperature"] = agent.temperature
        return settings
