"""Custom exceptions for BTW."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for BTW operations."""

    # General
    UNKNOWN_ERROR = "E100"
    INVALID_ARGUMENT = "E101"
    INVALID_INPUT = "E103"

    # File system
    FILE_NOT_FOUND = "E200"
    FILE_READ_ERROR = "E201"
    FILE_WRITE_ERROR = "E202"
    DIRECTORY_NOT_FOUND = "E203"
    PERMISSION_DENIED = "E204"

    # Manifest
    MANIFEST_NOT_FOUND = "E300"
    MANIFEST_PARSE_ERROR = "E301"
    MANIFEST_VALIDATION_ERROR = "E302"

    # Workflow
    WORKFLOW_NOT_FOUND = "E400"
    WORKFLOW_ALREADY_EXISTS = "E401"
    WORKFLOW_INSTALLATION_FAILED = "E403"
    WORKFLOW_REMOVAL_FAILED = "E404"

    # Injection
    INJECTION_FAILED = "E500"
    TARGET_NOT_SUPPORTED = "E501"
    TARGET_CONFIG_INVALID = "E503"
    BACKUP_FAILED = "E504"
    RESTORE_FAILED = "E505"

    # State
    STATE_NOT_FOUND = "E600"
    STATE_CORRUPTED = "E601"
    STATE_WRITE_ERROR = "E602"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.UNKNOWN_ERROR: "An unknown error occurred",
    ErrorCode.INVALID_ARGUMENT: "Invalid argument provided",
    ErrorCode.INVALID_INPUT: "Invalid input provided",
    ErrorCode.FILE_NOT_FOUND: "File not found",
    ErrorCode.FILE_READ_ERROR: "Failed to read file",
    ErrorCode.FILE_WRITE_ERROR: "Failed to write file",
    ErrorCode.DIRECTORY_NOT_FOUND: "Directory not found",
    ErrorCode.PERMISSION_DENIED: "Permission denied",
    ErrorCode.MANIFEST_NOT_FOUND: "Manifest file (btw.yaml) not found",
    ErrorCode.MANIFEST_PARSE_ERROR: "Failed to parse manifest file",
    ErrorCode.MANIFEST_VALIDATION_ERROR: "Manifest validation failed",
    ErrorCode.WORKFLOW_NOT_FOUND: "Workflow not found",
    ErrorCode.WORKFLOW_ALREADY_EXISTS: "Workflow already exists",
    ErrorCode.WORKFLOW_INSTALLATION_FAILED: "Failed to install workflow",
    ErrorCode.WORKFLOW_REMOVAL_FAILED: "Failed to remove workflow",
    ErrorCode.INJECTION_FAILED: "Failed to inject workflow",
    ErrorCode.TARGET_NOT_SUPPORTED: "AI target is not supported",
    ErrorCode.TARGET_CONFIG_INVALID: "AI tool configuration is invalid",
    ErrorCode.BACKUP_FAILED: "Failed to create backup",
    ErrorCode.RESTORE_FAILED: "Failed to restore from backup",
    ErrorCode.STATE_NOT_FOUND: "BTW state not found",
    ErrorCode.STATE_CORRUPTED: "BTW state is corrupted",
    ErrorCode.STATE_WRITE_ERROR: "Failed to write BTW state",
}

ERROR_HINTS: dict[ErrorCode, str] = {
    ErrorCode.FILE_NOT_FOUND: "Check if the file path is correct and the file exists.",
    ErrorCode.PERMISSION_DENIED: "Check file ownership or run with elevated permissions.",
    ErrorCode.MANIFEST_NOT_FOUND: "Ensure the workflow contains a btw.yaml file in its root directory.",
    ErrorCode.MANIFEST_PARSE_ERROR: "Check the btw.yaml file for YAML syntax errors.",
    ErrorCode.WORKFLOW_NOT_FOUND: "Run `btw list` to see installed workflows.",
    ErrorCode.WORKFLOW_ALREADY_EXISTS: "Use --force to overwrite the existing workflow.",
    ErrorCode.INJECTION_FAILED: "Check that the AI tool configuration directory is writable.",
    ErrorCode.TARGET_NOT_SUPPORTED: "Run `btw targets` to list supported targets.",
    ErrorCode.BACKUP_FAILED: "Ensure you have write permissions in the project directory.",
    ErrorCode.STATE_CORRUPTED: "Delete ~/.btw/state.json to reset local state.",
}


class BTWError(Exception):
    """Base exception for all BTW errors.

    Carries an ``ErrorCode`` for programmatic handling and a ``details``
    dict with the paths or identifiers needed to act on the failure.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code.value))
        self.code = code
        self.details = details or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def message(self) -> str:
        return str(self.args[0])

    @property
    def hint(self) -> str | None:
        return ERROR_HINTS.get(self.code)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for logging or JSON output."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause is not None else None,
        }

    @classmethod
    def wrap(
        cls,
        error: BaseException,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    ) -> BTWError:
        """Return ``error`` unchanged if it is a BTWError, else wrap it."""
        if isinstance(error, BTWError):
            return error
        return cls(code, str(error), cause=error)
