"""File system and path collaborators used by the injection strategies."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from .constants import AI_TOOL_MAPPINGS, BACKUP_EXTENSION, MANIFEST_FILENAME
from .exceptions import BTWError, ErrorCode
from .models import AITarget


def _os_error(
    error: OSError,
    path: Path,
    fallback: ErrorCode,
    action: str,
) -> BTWError:
    """Translate an OSError into a BTWError that names the path."""
    details = {"path": str(path)}
    if isinstance(error, FileNotFoundError):
        return BTWError(
            ErrorCode.FILE_NOT_FOUND, f"Path not found: {path}", details, error,
        )
    if isinstance(error, PermissionError):
        return BTWError(
            ErrorCode.PERMISSION_DENIED, f"Permission denied: {path}", details, error,
        )
    return BTWError(fallback, f"Failed to {action}: {path}", details, error)


class FileSystem:
    """Thin wrapper over pathlib that raises BTWError with path context.

    A missing path is always reported as ``ErrorCode.FILE_NOT_FOUND`` so
    callers can tell it apart from other I/O failures.
    """

    encoding = "utf-8"

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def read_file(self, path: Path) -> str:
        path = Path(path)
        try:
            return path.read_text(encoding=self.encoding)
        except OSError as e:
            raise _os_error(e, path, ErrorCode.FILE_READ_ERROR, "read file") from e

    def write_file(self, path: Path, content: str, create_dirs: bool = False) -> None:
        path = Path(path)
        try:
            if create_dirs:
                path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding=self.encoding)
        except FileNotFoundError as e:
            msg = f"Parent directory not found: {path.parent}"
            raise BTWError(
                ErrorCode.DIRECTORY_NOT_FOUND, msg, {"path": str(path)}, e,
            ) from e
        except OSError as e:
            raise _os_error(e, path, ErrorCode.FILE_WRITE_ERROR, "write file") from e

    def mkdir(self, path: Path) -> None:
        path = Path(path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise _os_error(
                e, path, ErrorCode.FILE_WRITE_ERROR, "create directory",
            ) from e

    def remove(self, path: Path, recursive: bool = False) -> None:
        path = Path(path)
        try:
            if path.is_dir() and not path.is_symlink():
                if recursive:
                    shutil.rmtree(path)
                else:
                    path.rmdir()
            else:
                path.unlink()
        except OSError as e:
            raise _os_error(e, path, ErrorCode.FILE_WRITE_ERROR, "remove") from e

    def copy(self, source: Path, destination: Path, overwrite: bool = False) -> None:
        source = Path(source)
        destination = Path(destination)
        if destination.exists() and not overwrite:
            msg = f"Destination already exists: {destination}. Use overwrite option."
            raise BTWError(
                ErrorCode.FILE_WRITE_ERROR,
                msg,
                {"source": str(source), "destination": str(destination)},
            )
        try:
            if source.is_dir():
                shutil.copytree(source, destination, dirs_exist_ok=overwrite)
            else:
                shutil.copyfile(source, destination)
        except OSError as e:
            raise _os_error(e, source, ErrorCode.FILE_WRITE_ERROR, "copy") from e

    def backup(self, path: Path, backup_path: Path | None = None) -> Path:
        """Copy ``path`` next to itself with the backup extension."""
        path = Path(path)
        target = Path(backup_path) if backup_path else backup_path_for(path)
        if not path.exists():
            raise BTWError(
                ErrorCode.FILE_NOT_FOUND,
                f"Source file not found: {path}",
                {"path": str(path), "backup_path": str(target)},
            )
        self.copy(path, target, overwrite=True)
        return target

    def restore(self, backup_path: Path, target_path: Path) -> None:
        backup_path = Path(backup_path)
        if not backup_path.exists():
            raise BTWError(
                ErrorCode.FILE_NOT_FOUND,
                f"Backup file not found: {backup_path}",
                {"backup_path": str(backup_path), "path": str(target_path)},
            )
        self.copy(backup_path, Path(target_path), overwrite=True)


def backup_path_for(path: Path) -> Path:
    """Backup location used for ``path``."""
    path = Path(path)
    return path.with_name(path.name + BACKUP_EXTENSION)


@dataclass(frozen=True)
class AiToolPaths:
    """Absolute paths of one target's files inside a project."""

    config_path: Path
    instructions_path: Path
    project_config_path: Path
    tool_dir: Path


class PathResolver:
    """Resolves per-target file locations under a project root."""

    project_root_markers = (".git", "pyproject.toml", "package.json", MANIFEST_FILENAME)

    def normalize(self, path: Path | str) -> Path:
        return Path(path).expanduser().resolve()

    def resolve_ai_tool_paths(self, project_root: Path | str, target: AITarget) -> AiToolPaths:
        """Return config, instructions and project-config paths for ``target``.

        Raises:
            BTWError: If the project root is empty or the target is unknown
        """
        if not str(project_root).strip():
            raise BTWError(ErrorCode.INVALID_INPUT, "Project root cannot be empty")

        tool_config = AI_TOOL_MAPPINGS.get(target)
        if tool_config is None:
            raise BTWError(
                ErrorCode.INVALID_INPUT,
                f"Unknown AI target: {target}",
                {"target": str(target)},
            )

        root = self.normalize(project_root)
        return AiToolPaths(
            config_path=root / tool_config.config_path,
            instructions_path=root / tool_config.instructions_path,
            project_config_path=root / tool_config.project_config_path,
            tool_dir=root / tool_config.tool_dir,
        )

    def find_project_root(self, start: Path | str) -> Path | None:
        """Walk up from ``start`` to the first directory holding a root marker."""
        current = self.normalize(start)
        for candidate in (current, *current.parents):
            if any((candidate / marker).exists() for marker in self.project_root_markers):
                return candidate
        return None
