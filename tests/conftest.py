"""Shared fixtures for BTW tests."""

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from btw.models import AgentDefinition, AITarget, Manifest


def make_manifest(
    workflow_id: str = "demo",
    targets: list[AITarget] | None = None,
    **overrides: object,
) -> Manifest:
    """Build a small valid manifest."""
    data: dict[str, object] = {
        "version": "1.0",
        "id": workflow_id,
        "name": "Demo Workflow",
        "description": "A workflow used in tests",
        "author": "Test Author",
        "repository": "https://example.com/demo",
        "targets": [AITarget.CLAUDE] if targets is None else targets,
        "agents": [
            AgentDefinition(
                id="a1",
                name="Agent",
                description="Helps with things",
                systemPrompt="Be helpful.",
                tags=["general", "review"],
            ),
        ],
    }
    data.update(overrides)
    return Manifest.model_validate(data)


@pytest.fixture
def project_root() -> Iterator[Path]:
    """Create an empty temporary project directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir).resolve()


@pytest.fixture
def manifest() -> Manifest:
    """Single-agent manifest targeting every built-in tool."""
    return make_manifest(targets=list(AITarget))
