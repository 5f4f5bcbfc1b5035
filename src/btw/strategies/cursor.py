"""Injection strategy for Cursor (.cursorrules)."""

from __future__ import annotations

from typing import Any

from ..models import AITarget, Manifest
from .base import BASE_CONFIG_SCHEMA, InjectionStrategy

CURSOR_CONFIG_SCHEMA: dict[str, Any] = {
    **BASE_CONFIG_SCHEMA,
    "properties": {
        **BASE_CONFIG_SCHEMA["properties"],
        "agents": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "name"],
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "model": {"type": "string"},
                    "temperature": {"type": "number"},
                },
            },
        },
    },
}


class CursorStrategy(InjectionStrategy):
    """Handles the legacy .cursorrules file and .cursor/settings.json.

    Cursor reads one rules file for every chat, so each agent becomes a
    named role the assistant is told to adopt for matching tasks.
    """

    target = AITarget.CURSOR
    config_schema = CURSOR_CONFIG_SCHEMA

    def render_instructions(self, manifest: Manifest, timestamp: str) -> str:
        lines = [f"# {manifest.title}", ""]
        if manifest.description:
            lines.extend([manifest.description, ""])

        lines.extend(["## Workflow", ""])
        lines.extend(self._workflow_info_lines(manifest))
        lines.append("")

        lines.extend([
            "## Agent Roles",
            "Adopt the role below that best matches the current request:",
            "",
        ])
        for agent in manifest.agents:
            lines.append(f"### {agent.name} (`{agent.id}`)")
            if agent.description:
                lines.append(f"Use for: {agent.description}")
            if agent.tags:
                lines.append(f"Tags: {', '.join(agent.tags)}")
            lines.extend(["", agent.system_prompt, ""])

        lines.extend(self._footer_lines(timestamp))
        lines.append("")
        return "\n".join(lines)

    def render_config(self, manifest: Manifest, timestamp: str) -> dict[str, Any]:
        return {
            "agents": [self._agent_settings(agent) for agent in manifest.agents],
            "_btw": self._metadata(manifest, timestamp),
        }
