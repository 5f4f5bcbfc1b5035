"""Loading of workflow manifests (btw.yaml)."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from .constants import MANIFEST_FILENAME
from .exceptions import BTWError, ErrorCode
from .models import Manifest


def resolve_manifest_path(path: Path) -> Path:
    """Accept either a manifest file or a workflow directory containing one."""
    path = Path(path)
    if path.is_dir():
        return path / MANIFEST_FILENAME
    return path


def parse_manifest(content: str, source: str = "<string>") -> Manifest:
    """Parse manifest YAML text into a ``Manifest``.

    Raises:
        BTWError: MANIFEST_PARSE_ERROR on YAML errors,
            MANIFEST_VALIDATION_ERROR when required fields are missing or wrong
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        msg = f"Failed to parse manifest YAML {source}: {e}"
        raise BTWError(ErrorCode.MANIFEST_PARSE_ERROR, msg, {"source": source}, e) from e

    if not isinstance(data, dict):
        msg = f"Manifest {source} must be a YAML mapping"
        raise BTWError(ErrorCode.MANIFEST_PARSE_ERROR, msg, {"source": source})

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        msg = f"Manifest validation failed for {source}: {e.error_count()} error(s)"
        raise BTWError(
            ErrorCode.MANIFEST_VALIDATION_ERROR,
            msg,
            {"source": source, "fields": fields},
            e,
        ) from e


def load_manifest(path: Path) -> Manifest:
    """Load and validate a manifest from disk.

    Args:
        path: Path to btw.yaml or to the workflow directory holding it

    Returns:
        Validated manifest
    """
    manifest_path = resolve_manifest_path(path)
    if not manifest_path.exists():
        msg = f"Manifest file not found: {manifest_path}"
        raise BTWError(ErrorCode.MANIFEST_NOT_FOUND, msg, {"path": str(manifest_path)})

    try:
        content = manifest_path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Failed to read manifest file: {e}"
        raise BTWError(ErrorCode.FILE_READ_ERROR, msg, {"path": str(manifest_path)}, e) from e

    return parse_manifest(content, str(manifest_path))
