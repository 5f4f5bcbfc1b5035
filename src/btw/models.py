"""Core data models for the BTW injection engine."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


def now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AITarget(str, Enum):
    """AI coding assistants a workflow can be injected into."""

    CLAUDE = "claude"
    CURSOR = "cursor"
    WINDSURF = "windsurf"
    COPILOT = "copilot"

    def __str__(self) -> str:
        return self.value


class _CamelModel(BaseModel):
    """Accepts both camelCase keys (btw.yaml, state.json) and field names."""

    model_config = ConfigDict(populate_by_name=True)


class AgentDefinition(_CamelModel):
    """A single agent within a workflow."""

    id: str = Field(..., min_length=1, description="Unique identifier for the agent")
    name: str = Field(..., min_length=1, description="Human-readable agent name")
    description: str = Field(default="", description="What this agent does")
    system_prompt: str = Field(
        ...,
        alias="systemPrompt",
        min_length=1,
        description="System prompt or instructions for the agent",
    )
    model: str | None = Field(default=None, description="Optional model override")
    temperature: float | None = Field(default=None, ge=0, le=2)
    tags: list[str] = Field(default_factory=list, description="Categorization tags")


class HookDefinitions(_CamelModel):
    """Shell commands bound to workflow lifecycle events."""

    pre_inject: list[str] = Field(default_factory=list, alias="preInject")
    post_inject: list[str] = Field(default_factory=list, alias="postInject")
    pre_remove: list[str] = Field(default_factory=list, alias="preRemove")
    post_remove: list[str] = Field(default_factory=list, alias="postRemove")


class Manifest(_CamelModel):
    """Workflow manifest (btw.yaml). Never mutated by the engine."""

    version: str = Field(..., description="Manifest schema version")
    id: str = Field(..., min_length=1, description="Unique workflow identifier")
    name: str = Field(default="", description="Human-readable name")
    description: str = Field(default="", description="Workflow description")
    author: str | None = None
    license: str | None = None
    repository: str | None = None
    targets: list[AITarget] = Field(..., min_length=1, description="Supported AI targets")
    agents: list[AgentDefinition] = Field(..., min_length=1, description="Agent definitions")
    hooks: HookDefinitions | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id")
    @classmethod
    def validate_id_format(cls, v: str) -> str:
        """Workflow IDs are embedded in marker comments."""
        if not re.match(r"^[^\s:>]+$", v):
            msg = "Workflow ID must not contain whitespace, ':' or '>'"
            raise ValueError(msg)
        return v

    @property
    def title(self) -> str:
        return self.name or self.id


class InjectOptions(BaseModel):
    """Options for injecting a workflow into one target."""

    project_root: Path
    backup: bool = False
    force: bool = Field(
        default=False,
        description="Allow overwriting a block owned by a different workflow",
    )
    merge: bool = Field(
        default=False,
        description="Preserve non-generated content in the host file",
    )


class MultiInjectOptions(InjectOptions):
    """Options for injecting into several targets at once."""

    targets: list[AITarget] | None = Field(
        default=None,
        description="Targets to inject; defaults to the manifest's targets",
    )

    def for_single_target(self) -> InjectOptions:
        return InjectOptions(
            project_root=self.project_root,
            backup=self.backup,
            force=self.force,
            merge=self.merge,
        )


class EjectOptions(BaseModel):
    """Options for removing injected content from one target."""

    project_root: Path
    restore_backup: bool = False
    clean: bool = Field(
        default=False,
        description="Remove the whole tool directory instead of just the block",
    )


class InjectionResult(BaseModel):
    """Outcome of a successful single-target injection."""

    target: AITarget
    config_path: Path
    agent_count: int
    backup_created: bool
    backup_path: Path | None = None


class InjectionStatus(BaseModel):
    """Injection state of one target in a project."""

    is_injected: bool
    workflow_id: str | None = None
    injected_at: str | None = None
    has_backup: bool = False
    backup_path: Path | None = None


class OperationResult(BaseModel, Generic[T]):
    """Success/failure envelope returned across the engine boundary."""

    success: bool
    data: T | None = None
    error: str | None = None
    warnings: list[str] | None = None


@dataclass
class MultiInjectionResult:
    """Per-target outcome of a multi-target injection."""

    results: dict[AITarget, InjectionResult] = field(default_factory=dict)
    failures: dict[AITarget, Exception] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures


class WorkflowState(_CamelModel):
    """Installation record of one workflow in a project."""

    workflow_id: str = Field(..., alias="workflowId")
    version: str
    installed_at: str = Field(default_factory=now_iso, alias="installedAt")
    last_injected_at: str | None = Field(default=None, alias="lastInjectedAt")
    source: str = ""
    active: bool = True
    content_hash: str | None = Field(default=None, alias="contentHash")


class ProjectState(_CamelModel):
    """Per-project tracking data."""

    project_path: str = Field(..., alias="projectPath")
    workflows: list[WorkflowState] = Field(default_factory=list)
    active_target: AITarget | None = Field(default=None, alias="activeTarget")
    initialized_at: str = Field(default_factory=now_iso, alias="initializedAt")
    last_modified_at: str = Field(default_factory=now_iso, alias="lastModifiedAt")

    def find_workflow(self, workflow_id: str) -> WorkflowState | None:
        for workflow in self.workflows:
            if workflow.workflow_id == workflow_id:
                return workflow
        return None


class BTWState(_CamelModel):
    """Contents of the global state file."""

    version: str
    projects: dict[str, ProjectState] = Field(default_factory=dict)
