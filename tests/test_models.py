"""Tests for BTW data models and errors."""

import re

import pytest
from pydantic import ValidationError

from btw.exceptions import BTWError, ErrorCode
from btw.models import (
    AgentDefinition,
    AITarget,
    BTWState,
    InjectionResult,
    Manifest,
    MultiInjectionResult,
    MultiInjectOptions,
    OperationResult,
    WorkflowState,
    now_iso,
)

from conftest import make_manifest


class TestManifest:
    """Test Manifest validation."""

    def test_valid_manifest_from_yaml_keys(self) -> None:
        """Test camelCase keys as they appear in btw.yaml."""
        manifest = Manifest.model_validate({
            "version": "1.0",
            "id": "demo",
            "targets": ["claude", "cursor"],
            "agents": [{"id": "a1", "name": "Agent", "systemPrompt": "Be helpful."}],
            "hooks": {"postInject": ["echo done"]},
        })
        assert manifest.targets == [AITarget.CLAUDE, AITarget.CURSOR]
        assert manifest.agents[0].system_prompt == "Be helpful."
        assert manifest.hooks.post_inject == ["echo done"]

    def test_title_falls_back_to_id(self) -> None:
        """Test that an unnamed workflow is titled by its ID."""
        assert make_manifest(name="").title == "demo"
        assert make_manifest().title == "Demo Workflow"

    @pytest.mark.parametrize("workflow_id", ["has space", "a:b", "a>b"])
    def test_invalid_workflow_id(self, workflow_id: str) -> None:
        """Test IDs that would break marker comments."""
        with pytest.raises(ValidationError, match="Workflow ID must not contain"):
            make_manifest(workflow_id)

    @pytest.mark.parametrize("field", ["targets", "agents"])
    def test_requires_targets_and_agents(self, field: str) -> None:
        """Test that empty target and agent lists are rejected."""
        with pytest.raises(ValidationError):
            make_manifest(**{field: []})

    def test_unknown_target(self) -> None:
        """Test that unknown targets are rejected."""
        with pytest.raises(ValidationError):
            make_manifest(targets=["emacs"])


class TestAgentDefinition:
    """Test AgentDefinition validation."""

    def test_defaults(self) -> None:
        """Test optional agent fields."""
        agent = AgentDefinition(id="a1", name="Agent", system_prompt="x")
        assert agent.description == ""
        assert agent.tags == []
        assert agent.model is None

    def test_temperature_range(self) -> None:
        """Test temperature bounds."""
        with pytest.raises(ValidationError):
            AgentDefinition(id="a1", name="Agent", system_prompt="x", temperature=2.5)

    def test_empty_prompt_rejected(self) -> None:
        """Test that the system prompt is required."""
        with pytest.raises(ValidationError):
            AgentDefinition(id="a1", name="Agent", system_prompt="")


class TestResults:
    """Test result containers."""

    def test_operation_result_defaults(self) -> None:
        """Test a bare failure result."""
        result = OperationResult[InjectionResult](success=False, error="nope")
        assert result.data is None
        assert result.warnings is None

    def test_multi_injection_success(self) -> None:
        """Test that any failure marks the whole run failed."""
        outcome = MultiInjectionResult()
        assert outcome.success is True
        outcome.failures[AITarget.CURSOR] = RuntimeError("boom")
        assert outcome.success is False

    def test_multi_options_for_single_target(self, tmp_path) -> None:
        """Test dropping the target list for per-target calls."""
        options = MultiInjectOptions(
            project_root=tmp_path, backup=True, merge=True, targets=[AITarget.CLAUDE],
        )
        single = options.for_single_target()
        assert single.backup is True
        assert single.merge is True
        assert not hasattr(single, "targets")


class TestState:
    """Test state models."""

    def test_state_round_trip_uses_camel_case(self) -> None:
        """Test that state serializes with camelCase keys."""
        state = BTWState.model_validate({
            "version": "1.0.0",
            "projects": {
                "/p": {
                    "projectPath": "/p",
                    "workflows": [{"workflowId": "demo", "version": "1.0"}],
                },
            },
        })
        dumped = state.model_dump(mode="json", by_alias=True)
        workflow = dumped["projects"]["/p"]["workflows"][0]
        assert workflow["workflowId"] == "demo"
        assert "lastInjectedAt" in workflow

    def test_find_workflow(self) -> None:
        """Test looking up a tracked workflow."""
        state = BTWState.model_validate({
            "version": "1.0.0",
            "projects": {"/p": {"projectPath": "/p", "workflows": [
                WorkflowState(workflow_id="demo", version="1.0").model_dump(by_alias=True),
            ]}},
        })
        project = state.projects["/p"]
        assert project.find_workflow("demo").version == "1.0"
        assert project.find_workflow("other") is None

    def test_now_iso_format(self) -> None:
        """Test UTC timestamps with millisecond precision."""
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", now_iso())


class TestBTWError:
    """Test the error type."""

    def test_default_message_and_hint(self) -> None:
        """Test the per-code defaults."""
        error = BTWError(ErrorCode.TARGET_NOT_SUPPORTED)
        assert error.message == "AI target is not supported"
        assert str(error) == "[E501] AI target is not supported"
        assert error.hint is not None

    def test_cause_is_chained(self) -> None:
        """Test that the cause is kept and chained."""
        cause = OSError("disk full")
        error = BTWError(ErrorCode.BACKUP_FAILED, "backup failed", {"path": "/x"}, cause)
        assert error.__cause__ is cause
        assert error.to_dict() == {
            "code": "E504",
            "message": "backup failed",
            "details": {"path": "/x"},
            "cause": "disk full",
        }

    def test_wrap(self) -> None:
        """Test wrapping foreign exceptions."""
        original = BTWError(ErrorCode.FILE_NOT_FOUND)
        assert BTWError.wrap(original) is original

        wrapped = BTWError.wrap(ValueError("bad"), ErrorCode.INVALID_INPUT)
        assert wrapped.code == ErrorCode.INVALID_INPUT
        assert wrapped.message == "bad"
